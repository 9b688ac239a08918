from __future__ import annotations
from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    MISSING_FIELDS = "missing_fields"
    INVALID_PRICE = "invalid_price"
    INVALID_FIELDS = "invalid_fields"
    EMPTY_ORDER = "empty_order"
    NO_VALID_ITEMS = "no_valid_items"
    TOTAL_OUT_OF_RANGE = "total_out_of_range"
    INTERNAL_ERROR = "internal_error"


class StoreError(Exception):
    """Base error for the storefront, rendered as ``{"error", "code"}``."""

    status_code = 500

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_client(self) -> dict:
        return {"error": self.message, "code": self.code.value}


class Unauthorized(StoreError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(ErrorCode.UNAUTHORIZED, message)


class BadRequest(StoreError):
    status_code = 400
