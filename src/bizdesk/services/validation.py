from __future__ import annotations

import math
from typing import Iterable, Optional

from bizdesk.domain.errors import NotFoundError, ValidationError
from bizdesk.domain.models import LineItem


def clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def valid_amount(value) -> bool:
    """A finite number >= 0."""
    return value is not None and math.isfinite(value) and value >= 0


def require_text(value: Optional[str], message: str) -> str:
    cleaned = clean_text(value)
    if not cleaned:
        raise ValidationError(message)
    return cleaned


def require_status(status: Optional[str], allowed: tuple[str, ...], default: str) -> str:
    status = clean_text(status) or default
    if status not in allowed:
        raise ValidationError(f"Status must be one of: {', '.join(allowed)}")
    return status


def line_items(repo, raw_items: Iterable) -> list[LineItem]:
    """Typed, validated line items. Every referenced product must exist."""
    items: list[LineItem] = []
    for raw in raw_items:
        if isinstance(raw, LineItem):
            it = raw
        else:
            try:
                it = LineItem(
                    product_id=int(raw["product_id"]),
                    quantity=int(raw["quantity"]),
                    price=float(raw.get("price", 0) or 0),
                )
            except (KeyError, TypeError, ValueError, OverflowError) as exc:
                raise ValidationError("Invalid items format") from exc
        if it.quantity <= 0:
            raise ValidationError("Quantity must be >= 1.")
        if not valid_amount(it.price):
            raise ValidationError("Price must be >= 0.")
        if repo.get_product(it.product_id) is None:
            raise NotFoundError(f"Product not found: {it.product_id}")
        items.append(it)
    if not items:
        raise ValidationError("At least one item is required")
    return items
