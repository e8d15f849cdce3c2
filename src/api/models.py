# wire and derived dataclass models

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


def to_decimal(val: Any) -> Decimal:
    """Convert a JSON number to Decimal without picking up float noise."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    cost: Decimal
    rating: int
    image_url: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=str(data["_id"]),
            name=data.get("name", ""),
            category=data.get("category", ""),
            cost=to_decimal(data.get("cost", 0)),
            rating=int(data.get("rating", 0)),
            image_url=data.get("image", ""),
        )


@dataclass(frozen=True)
class CartEntry:
    product_id: str
    qty: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CartEntry":
        return cls(product_id=str(data["productId"]), qty=int(data["qty"]))


@dataclass(frozen=True)
class CartItem:
    """A cart entry joined with its product; derived, never persisted."""

    id: str
    name: str
    category: str
    cost: Decimal
    rating: int
    image_url: str
    qty: int

    @classmethod
    def join(cls, entry: CartEntry, product: Product) -> "CartItem":
        return cls(
            id=product.id,
            name=product.name,
            category=product.category,
            cost=product.cost,
            rating=product.rating,
            image_url=product.image_url,
            qty=entry.qty,
        )

    @property
    def line_total(self) -> Decimal:
        return self.cost * self.qty


@dataclass(frozen=True)
class OrderSummary:
    item_count: int
    subtotal: Decimal
    shipping: Decimal
    total: Decimal


@dataclass(frozen=True)
class LoginResult:
    username: str
    token: str
    balance: Optional[Decimal]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "LoginResult":
        balance = data.get("balance")
        return cls(
            username=data["username"],
            token=data["token"],
            balance=to_decimal(balance) if balance is not None else None,
        )
