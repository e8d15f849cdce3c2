# signals emitted by the cart and catalog engines to whoever renders them

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from api.errors import StorefrontError

Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True)
class CartChanged:
    """The local cart entries changed (optimistically or from the server)."""

    product_id: Optional[str] = None


@dataclass(frozen=True)
class CatalogChanged:
    """The catalog store was replaced. query is None for the full catalog."""

    query: Optional[str] = None


@dataclass(frozen=True)
class Notice:
    """Something the user should be told about."""

    message: str
    severity: Severity = "information"
    error: Optional[StorefrontError] = None

    @classmethod
    def from_error(cls, error: StorefrontError) -> "Notice":
        return cls(message=error.message, severity=error.severity, error=error)


Event = CartChanged | CatalogChanged | Notice
Emit = Callable[[Event], None]


def ignore(_event: Event) -> None:
    pass
