from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Label

from utils.messages import CartChangedMessage, CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import format_money, format_rating
from views.base_screen import BaseScreen


class ProductsScreen(BaseScreen):
    """
    Product catalog with search-as-you-type. Enter on a row adds it to the cart.
    """

    BINDINGS = [
        Binding("a", "add_to_cart", "Add to Cart", show=True),
        Binding("slash", "focus_search", "Search", show=True),
    ]

    COLUMNS = ("Name", "Category", "Cost", "Rating", "In Cart")

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-search", placeholder="Search for items/categories")
        yield DataTable(id="table-products")
        yield Label("", id="label-catalog-status")
        yield Label("", id="label-cart-brief")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(*self.COLUMNS)

        self.render_catalog()
        self.render_cart_brief()
        self.query_one("#input-search").focus()

    @on(Input.Changed, "#input-search")
    def handle_search_input(self, message: Input.Changed) -> None:
        self.app.state.debouncer.on_input(message.value.strip())
        self.query_one("#label-catalog-status").update("Loading products...")

    @on(DataTable.RowSelected)
    def handle_row_selected(self, message: DataTable.RowSelected) -> None:
        self.app.state.coordinator.add_to_cart(message.row_key.value)

    def action_add_to_cart(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        self.app.state.coordinator.add_to_cart(row_key.value)

    def action_focus_search(self) -> None:
        self.query_one("#input-search").focus()

    @on(CatalogChangedMessage)
    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def handle_store_changed(self) -> None:
        self.render_catalog()
        self.render_cart_brief()

    def render_catalog(self) -> None:
        state = self.app.state
        table = self.query_one(DataTable)
        if not table.columns:
            return
        cursor_row = table.cursor_row

        table.clear()
        for product in state.products:
            qty = state.cart.quantity(product.id)
            table.add_row(
                product.name,
                product.category,
                format_money(product.cost),
                format_rating(product.rating),
                str(qty) if qty else "",
                key=product.id,
            )
        if table.row_count:
            table.move_cursor(row=min(cursor_row, table.row_count - 1))

        status = self.query_one("#label-catalog-status")
        if not state.catalog.loaded:
            status.update("Loading products...")
        elif not state.products:
            status.update("No products found")
        else:
            status.update(f"{len(state.products)} products")

    def render_cart_brief(self) -> None:
        state = self.app.state
        brief = self.query_one("#label-cart-brief")
        if not state.session.is_active:
            brief.update("Login to add items to the cart.")
            return
        summary = state.summary
        brief.update(
            f"Cart: {summary.item_count} item(s), {format_money(summary.total)}"
        )
