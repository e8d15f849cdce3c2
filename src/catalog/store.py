from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from api.models import Product


class ProductCatalogStore:
    """
    Most recently fetched product list, either the full catalog or the
    results of a search. Always replaced wholesale, never edited in place.
    """

    def __init__(self) -> None:
        self._products: List[Product] = []
        self._by_id: Dict[str, Product] = {}
        self.query: Optional[str] = None
        self.loaded = False

    def replace(self, products: Iterable[Product], query: Optional[str] = None) -> None:
        self._products = list(products)
        self._by_id = {p.id: p for p in self._products}
        self.query = query
        self.loaded = True

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._by_id

    def __len__(self) -> int:
        return len(self._products)
