from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Markdown, Rule

from api.models import CartItem
from utils.messages import CartChangedMessage, CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import format_money, order_summary_table
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, action: str) -> None:
        super().__init__()
        self.action = action


class CartItemActionLabel(Label):
    def action_increment(self):
        self.post_message(CartItemActionMessage("increment"))

    def action_decrement(self):
        self.post_message(CartItemActionMessage("decrement"))

    def action_remove(self):
        self.post_message(CartItemActionMessage("remove"))


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem, pending: bool = False):
        super().__init__()
        self.item = item
        self.pending = pending

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.name, id="label-item-name")
                yield Label(format_money(self.item.cost), id="label-item-price")
            with Container(id="div-actions"):
                yield CartItemActionLabel(
                    "[@click=decrement()] - [/]", id="link-item-decrement"
                )
                qty = f"{self.item.qty}…" if self.pending else str(self.item.qty)
                yield Label(qty, id="label-item-qty")
                yield CartItemActionLabel(
                    "[@click=increment()] + [/]", id="link-item-increment"
                )
                yield CartItemActionLabel(
                    "[@click=remove()]Remove[/]", id="link-item-remove"
                )

    @on(CartItemActionMessage)
    def handle_action(self, message: CartItemActionMessage):
        message.stop()
        coordinator = self.app.state.coordinator
        if message.action == "increment":
            coordinator.increment_quantity(self.item.id)
        elif message.action == "decrement":
            coordinator.decrement_quantity(self.item.id)
        elif message.action == "remove":
            self.confirm_remove()

    @work()
    async def confirm_remove(self):
        remove_confirmed = await self.app.push_screen_wait(
            ConfirmModal("Do you really want to remove this item from cart?")
        )
        if remove_confirmed:
            self.app.state.coordinator.remove_from_cart(self.item.id)


class CartScreen(BaseScreen):
    """
    Reconciled cart lines with quantity controls, plus the order summary.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Rule(line_style="dashed")
        yield Markdown("", id="md-order-summary")
        yield Button("Refresh", id="btn-refresh")

    async def on_mount(self):
        await self.render_cart()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def handle_refresh(self):
        await self.app.state.load()

    @on(CartChangedMessage)
    @on(CatalogChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # overlapping re-renders would mount duplicate rows
    async def handle_cart_change(self):
        await self.render_cart()

    async def render_cart(self):
        state = self.app.state
        content = self.query_one("#vertscroll-content")
        await content.remove_children()

        if not state.session.is_active:
            await content.mount(Label("Login to see your cart."))
            content.add_class("no-items")
            await self.query_one("#md-order-summary").update("")
            return

        items = state.cart_items
        if not items:
            await content.mount(
                Label("Cart is empty. Add more items to the cart to checkout.")
            )
            content.add_class("no-items")
        else:
            content.remove_class("no-items")
            await content.mount_all(
                [
                    CartItemWidget(item, state.coordinator.is_pending(item.id))
                    for item in items
                ]
            )

        await self.query_one("#md-order-summary").update(
            order_summary_table(state.summary)
        )
