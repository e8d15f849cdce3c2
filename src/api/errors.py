"""Storefront error taxonomy.

Every failure the core can report is a StorefrontError carrying a
user-facing ``message``, so screens can catch them uniformly and hand the
text to ``App.notify``.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    severity = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkFailure(StorefrontError):
    """Transport error, or a non-2xx response that is not a documented exception."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ValidationFailure(StorefrontError):
    """Input rejected client-side, before any network call."""

    severity = "warning"


class NotFound(StorefrontError):
    """Remote 404. For searches this means an empty result, not an error."""

    severity = "information"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class DuplicateOperation(StorefrontError):
    """Add-to-cart on a product that is already in the cart."""

    severity = "warning"

    def __init__(self, product_id: str):
        super().__init__(
            "Item already in cart. Use the cart sidebar to update quantity or remove item."
        )
        self.product_id = product_id
