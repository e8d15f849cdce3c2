from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from cart.events import CartChanged, CatalogChanged, Event, Notice
from db import database
from utils.config import Settings, load_settings
from utils.logger import get_logger, use_textual_handler
from utils.messages import (
    CartChangedMessage,
    CatalogChangedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_products import ProductsScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "products": ProductsScreen,
        "cart": CartScreen,
    }

    MODE_TITLES = {"products": "Products", "cart": "Cart"}

    CSS_PATH = "styles/storefront.tcss"

    state: GlobalState

    def __init__(self, settings: Optional[Settings] = None, state: Optional[GlobalState] = None):
        super().__init__()
        settings = settings or load_settings()
        database.configure(settings.db_path)
        self.state = state or GlobalState(settings=settings)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.state.subscribe(self.handle_state_event)
        self.main_flow()

    def menu_modes(self) -> dict:
        if self.state.session.is_active:
            return self.MODE_TITLES
        return {"products": self.MODE_TITLES["products"]}

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def handle_state_event(self, event: Event) -> None:
        """Bridge engine signals onto the textual message queue of the active screen."""
        if isinstance(event, Notice):
            self.notify(event.message, severity=event.severity)
        elif isinstance(event, CartChanged):
            for screen in self.screen_stack:
                screen.post_message(CartChangedMessage(event.product_id))
        elif isinstance(event, CatalogChanged):
            for screen in self.screen_stack:
                screen.post_message(CatalogChangedMessage(event.query))

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.close()
        self.exit()

    @work(exclusive=True)
    async def main_flow(self):
        if not await self.state.restore_session():
            await self.push_screen_wait(LoginScreen())

        await self.state.load()
        self.post_message(ModeSwitchedMessage(self.current_mode, "products"))
        await self.switch_mode("products")
        self.screen.post_message(UserLoginMessage())


def run() -> None:
    use_textual_handler()
    app = StorefrontApp()
    app.run()


if __name__ == "__main__":
    run()
