"""
Order item normalization

Turns submitted line items into ``NormalizedItem`` values tagged either as a
catalog reference or as an ad-hoc product. A reference that looks like a
catalog id (a positive integer, as a number or a digit string) must resolve to
an existing product; anything else is an ad-hoc product whose submitted name,
price and image are taken as given.
"""
from dataclasses import dataclass
from sqlalchemy.orm import Session
from typing import List, Optional, Sequence, Union
import logging
import re

from cravebites.db.database import is_valid_id
from cravebites.errors import ValidationError
from cravebites.models.catalog import Product
from cravebites.models.order import ProductKind
from cravebites.models.schemas import OrderCreate, OrderItemCreate

logger = logging.getLogger(__name__)

CATALOG_REF_PATTERN = re.compile(r"^[1-9][0-9]{0,17}$")


@dataclass(frozen=True)
class NormalizedItem:
    """A line item ready to be stored"""
    product_ref: str
    product_kind: ProductKind
    product_id: Optional[int]
    name: str
    quantity: int
    price: float
    image: Optional[str] = None


def catalog_id(product_ref: Union[int, str]) -> Optional[int]:
    """Return the catalog id encoded in ``product_ref``, or None for ad-hoc refs"""
    if isinstance(product_ref, bool):
        return None
    if isinstance(product_ref, int):
        return product_ref if product_ref > 0 else None
    ref = str(product_ref).strip()
    if CATALOG_REF_PATTERN.match(ref):
        return int(ref)
    return None


def classify(product_ref: Union[int, str]) -> ProductKind:
    return ProductKind.CATALOG if catalog_id(product_ref) is not None else ProductKind.ADHOC


def check_taxes(order: OrderCreate, errors: List[str]) -> None:
    if not order.cgst or not order.sgst:
        errors.append("CGST and SGST are required")


def normalize_items(db: Session, items: Sequence[OrderItemCreate]) -> List[NormalizedItem]:
    """Validate and tag every item, failing the whole batch on any problem"""
    if not items:
        raise ValidationError(["Order items are required"])
    errors: List[str] = []

    # Out-of-range ids cannot match a product and are reported as not found
    ids = {
        ref_id for ref_id in (catalog_id(item.product_ref) for item in items)
        if ref_id is not None and is_valid_id(ref_id)
    }
    products = {}
    if ids:
        products = {p.id: p for p in db.query(Product).filter(Product.id.in_(ids)).all()}

    normalized = []
    for position, item in enumerate(items, start=1):
        label = f"Item {position}"
        if item.quantity < 1:
            errors.append(f"{label}: Quantity must be at least 1")
        if item.price is not None and item.price < 0:
            errors.append(f"{label}: Price cannot be negative")

        product_id = catalog_id(item.product_ref)
        if product_id is not None:
            product = products.get(product_id)
            if product is None:
                errors.append(f"{label}: Product {product_id} not found")
                continue
            normalized.append(NormalizedItem(
                product_ref=str(product_id),
                product_kind=ProductKind.CATALOG,
                product_id=product.id,
                name=item.name or product.name,
                quantity=item.quantity,
                price=item.price if item.price is not None else product.price,
                image=item.image if item.image is not None else product.image,
            ))
        else:
            if not str(item.product_ref).strip():
                errors.append(f"{label}: Product ID is required")
                continue
            if not item.name:
                errors.append(f"{label}: Name is required for a custom product")
            if item.price is None:
                errors.append(f"{label}: Price is required for a custom product")
            if item.name and item.price is not None:
                normalized.append(NormalizedItem(
                    product_ref=str(item.product_ref).strip(),
                    product_kind=ProductKind.ADHOC,
                    product_id=None,
                    name=item.name,
                    quantity=item.quantity,
                    price=item.price,
                    image=item.image,
                ))

    if errors:
        raise ValidationError(errors)

    return normalized


def normalize_order(db: Session, order: OrderCreate) -> List[NormalizedItem]:
    """Run every creation check, reporting all problems at once"""
    errors: List[str] = []
    if not order.order_items:
        errors.append("Order items are required")
    check_taxes(order, errors)
    if errors:
        raise ValidationError(errors)

    normalized = normalize_items(db, order.order_items)
    logger.debug(
        f"Normalized {len(normalized)} items: "
        f"{sum(1 for i in normalized if i.product_kind is ProductKind.ADHOC)} ad-hoc"
    )
    return normalized
