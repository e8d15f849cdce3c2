from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from api.models import CartItem, OrderSummary

ZERO = Decimal("0")


def totals(items: Iterable[CartItem], shipping: Decimal = ZERO) -> OrderSummary:
    """Order totals for reconciled cart items; all zeros for an empty cart."""
    item_count = 0
    subtotal = ZERO
    for item in items:
        item_count += item.qty
        subtotal += item.cost * item.qty
    shipping = Decimal(shipping) if item_count else ZERO
    return OrderSummary(
        item_count=item_count,
        subtotal=subtotal,
        shipping=shipping,
        total=subtotal + shipping,
    )
