from __future__ import annotations
import logging
import math
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from catalog import PRODUCTS
from database import JsonStore
from errors import BadRequest, ErrorCode
from schemas import (
    Order,
    OrderItemRequest,
    OrderLineItem,
    OrderSubmission,
    RejectedLine,
    is_finite_number,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

ORDERS = "orders"

def _valid_price(price: Any) -> bool:
    return is_finite_number(price) and price >= 0


def _line_total(price: Any, quantity: int) -> Any:
    try:
        line_total = price * quantity
    except OverflowError:
        return None
    return line_total if math.isfinite(line_total) else None


def _invalid_fields(e: ValidationError) -> set:
    return {err["loc"][0] if err["loc"] else None for err in e.errors()}


def normalize_items(items: list[Any], products: list[dict[str, Any]]) -> tuple[list[OrderLineItem], list[RejectedLine]]:
    """Price each requested line against the catalog.

    Lines that can't be priced are dropped from the order and reported back.
    """
    product_by_id = {p["id"]: p for p in products if isinstance(p, dict) and isinstance(p.get("id"), str)}
    lines: list[OrderLineItem] = []
    rejected: list[RejectedLine] = []

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            rejected.append(RejectedLine(index=index, reason="Item must be an object"))
            continue
        product_id = item.get("productId")
        raw_quantity = item.get("quantity")

        try:
            request = OrderItemRequest.model_validate(item)
            bad = set()
        except ValidationError as e:
            request = None
            bad = _invalid_fields(e)

        product = None if "productId" in bad else product_by_id.get(product_id)
        if product is None:
            reason = "Unknown product"
        elif not _valid_price(product.get("price")):
            reason = "Product has no valid price"
        elif request is None:
            reason = "Quantity must be a positive whole number"
        elif _line_total(product["price"], request.quantity) is None:
            reason = "Line total is out of range"
        else:
            reason = None
        if reason is not None:
            rejected.append(RejectedLine(index=index, product_id=product_id, quantity=raw_quantity, reason=reason))
            continue

        price = product["price"]
        lines.append(OrderLineItem(
            product_id=product["id"],
            name=str(product.get("name", "")),
            price=price,
            quantity=request.quantity,
            line_total=_line_total(price, request.quantity),
        ))

    return lines, rejected


def submit_order(store: JsonStore, items: Any, customer: Any = None) -> OrderSubmission:
    if not isinstance(items, list) or len(items) == 0:
        raise BadRequest(ErrorCode.EMPTY_ORDER, "Order must include items")

    lines, rejected = normalize_items(items, store.load(PRODUCTS))
    for line in rejected:
        logger.warning(f"Dropped order line {line.index} (productId={line.product_id!r}): {line.reason}")
    if not lines:
        raise BadRequest(ErrorCode.NO_VALID_ITEMS, "No valid items in order")

    # Running sum in line order, so total matches the lines exactly
    total = 0
    for line in lines:
        total += line.line_total
    if not math.isfinite(total):
        raise BadRequest(ErrorCode.TOTAL_OUT_OF_RANGE, "Order total is out of range")

    order = Order(
        id="ord_" + uuid4().hex,
        items=lines,
        total=total,
        customer=customer or {},
        created_at=utc_now_iso(),
        status="received",
    )
    store.append(ORDERS, order.model_dump(by_alias=True))
    logger.info(f"Order {order.id} received: {len(lines)} line(s), total {order.total}")
    return OrderSubmission(order=order, rejected=rejected)
