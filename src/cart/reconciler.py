from __future__ import annotations

from typing import Iterable, List

from api.models import CartEntry, CartItem, Product


def reconcile(entries: Iterable[CartEntry], catalog: Iterable[Product]) -> List[CartItem]:
    """
    Join cart entries with catalog products into renderable cart items.

    Output follows cart order, not catalog order. Entries whose product is
    missing from the catalog (the catalog and cart are fetched separately,
    or the catalog currently holds search results) are left out.
    """
    by_id = {p.id: p for p in catalog}
    items = []
    for entry in entries:
        product = by_id.get(entry.product_id)
        if product is None or entry.qty <= 0:
            continue
        items.append(CartItem.join(entry, product))
    return items
