from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from api.models import CartEntry


class CartEntryStore:
    """
    Sparse cart as (product_id, qty) pairs, kept in cart insertion order.

    A quantity of 0 means "absent": such entries are never stored.
    """

    def __init__(self, entries: Iterable[CartEntry] = ()) -> None:
        self._qty: Dict[str, int] = {}
        self.loaded = False
        if entries:
            self.replace(entries)

    def replace(self, entries: Iterable[CartEntry]) -> None:
        """Swap in a full server snapshot. Later duplicates overwrite earlier ones."""
        qty: Dict[str, int] = {}
        for entry in entries:
            if entry.qty > 0:
                qty[entry.product_id] = entry.qty
            else:
                qty.pop(entry.product_id, None)
        self._qty = qty
        self.loaded = True

    def set_quantity(
        self, product_id: str, qty: int, position: Optional[int] = None
    ) -> None:
        """
        qty <= 0 removes the entry. An existing entry keeps its place; a new
        one is appended, or inserted at ``position`` when given.
        """
        if qty <= 0:
            self._qty.pop(product_id, None)
        elif product_id in self._qty or position is None:
            self._qty[product_id] = qty
        else:
            items = list(self._qty.items())
            items.insert(position, (product_id, qty))
            self._qty = dict(items)

    def position(self, product_id: str) -> Optional[int]:
        for index, pid in enumerate(self._qty):
            if pid == product_id:
                return index
        return None

    def quantity(self, product_id: str) -> int:
        return self._qty.get(product_id, 0)

    def entries(self) -> List[CartEntry]:
        return [CartEntry(pid, qty) for pid, qty in self._qty.items()]

    def clear(self) -> None:
        self._qty = {}
        self.loaded = False

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._qty

    def __len__(self) -> int:
        return len(self._qty)
