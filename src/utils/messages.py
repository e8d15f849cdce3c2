from typing import Optional

from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged in (or a saved session was restored), so screens can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Posted by the app whenever the cart engine reports a change, optimistic or confirmed.
    Screens showing cart contents or totals re-render on it.

    product_id is None when the whole cart was reloaded.
    """

    bubble = True

    def __init__(self, product_id: Optional[str] = None) -> None:
        super().__init__()
        self.product_id = product_id


class CatalogChangedMessage(Message):
    """
    Posted when the product list was replaced by a full fetch or a search result.
    query is None for the full catalog.
    """

    bubble = True

    def __init__(self, query: Optional[str] = None) -> None:
        super().__init__()
        self.query = query


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
