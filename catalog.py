from __future__ import annotations
import hmac
import logging
from typing import Any, Optional
from uuid import uuid4

from pydantic import ValidationError

from database import JsonStore
from errors import BadRequest, ErrorCode, Unauthorized
from schemas import Product, ProductDraft, utc_now_iso

logger = logging.getLogger(__name__)

PRODUCTS = "products"

# Price errors that mean "a number, but not an acceptable one"
_PRICE_RANGE_ERRORS = {"greater_than_equal", "finite_number"}


def check_api_key(supplied: Optional[str], expected: str) -> None:
    if not supplied or not hmac.compare_digest(supplied.encode(), expected.encode()):
        logger.warning("Rejected product write with a missing or invalid admin key")
        raise Unauthorized()


def draft_error(e: ValidationError) -> BadRequest:
    errors = e.errors()
    fields = [err["loc"][0] if err["loc"] else None for err in errors]
    if any(
        field in (None, "name") or (field == "price" and err["type"] not in _PRICE_RANGE_ERRORS)
        for field, err in zip(fields, errors)
    ):
        return BadRequest(ErrorCode.MISSING_FIELDS, "Missing required fields: name, price")
    if "price" in fields:
        return BadRequest(ErrorCode.INVALID_PRICE, "Price must be a finite, non-negative number")
    names = sorted({str(field) for field in fields})
    return BadRequest(ErrorCode.INVALID_FIELDS, f"Invalid fields: {', '.join(names)}")


def list_products(store: JsonStore) -> list[dict[str, Any]]:
    return store.load(PRODUCTS)


def create_product(store: JsonStore, payload: Any, api_key: Optional[str], admin_key: str) -> Product:
    # Auth is checked before the body is looked at
    check_api_key(api_key, admin_key)

    try:
        draft = ProductDraft.model_validate(payload)
    except ValidationError as e:
        raise draft_error(e) from e

    product = Product(id=uuid4().hex, created_at=utc_now_iso(), **draft.model_dump())
    store.append(PRODUCTS, product.model_dump(by_alias=True))
    logger.info(f"Product {product.id} created: {product.name} @ {product.price}")
    return product


DEMO_PRODUCTS: list[dict[str, Any]] = [
    {"name": "Organic Tomatoes", "price": 3.5, "unit": "lb", "category": "Vegetables", "imageUrl": "https://images.unsplash.com/photo-1546470427-e5b09dc1111b?w=800&auto=format&fit=crop"},
    {"name": "Free-range Eggs", "price": 5.0, "unit": "dozen", "category": "Dairy", "imageUrl": "https://images.unsplash.com/photo-1498654077810-12b21aa1e5b1?w=800&auto=format&fit=crop"},
    {"name": "Raw Honey", "price": 9.0, "unit": "16 oz jar", "category": "Pantry", "imageUrl": "https://images.unsplash.com/photo-1505575972945-2804b50f740f?w=800&auto=format&fit=crop"},
    {"name": "Fresh Kale", "price": 2.0, "unit": "bunch", "category": "Greens", "imageUrl": "https://images.unsplash.com/photo-1563480690463-85e6a455ba7b?w=800&auto=format&fit=crop"},
]


def seed_products(store: JsonStore, admin_key: str) -> int:
    """Insert the demo catalog, only if the catalog is empty. Returns how many were added."""
    if list_products(store):
        return 0
    for p in DEMO_PRODUCTS:
        create_product(store, p, admin_key, admin_key)
    logger.info(f"Seeded {len(DEMO_PRODUCTS)} demo products")
    return len(DEMO_PRODUCTS)
