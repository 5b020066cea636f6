from typing import Dict, List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer, Select

import db.crud as crud
from db.errors import WriteFailure
from db.models import Order
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen, selected_row_key
from views.modal_dialog import DialogModal

ALL_CATEGORIES = "all"


class UserVendorsScreen(BaseScreen):
    """
    Catalog of active products, filterable by vendor category.
    """

    ROUTE = "/user/vendors"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Select(
            [("All categories", ALL_CATEGORIES)],
            value=ALL_CATEGORIES,
            allow_blank=False,
            id="select-category",
        )
        yield DataTable(id="table-catalog")
        with Horizontal(id="hort-buttons"):
            yield Button("Add to Cart", id="btn-add-cart", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Vendor", "Category", "Price")
        self.load_categories()

    @work(exclusive=True, group="categories")
    async def load_categories(self) -> None:
        categories = await crud.list_categories()
        self.query_one("#select-category", Select).set_options(
            [("All categories", ALL_CATEGORIES)] + [(c.name, c.id) for c in categories]
        )
        self.query_one("#select-category", Select).value = ALL_CATEGORIES
        self.load_catalog()

    @on(Select.Changed, "#select-category")
    def handle_category_changed(self) -> None:
        self.load_catalog()

    @work(exclusive=True, group="catalog")
    async def load_catalog(self) -> None:
        category_id = self.query_one("#select-category", Select).value
        if category_id == ALL_CATEGORIES or not isinstance(category_id, str):
            category_id = None
        entries = await crud.list_catalog(category_id)

        table = self.query_one(DataTable)
        table.clear()
        for entry in entries:
            table.add_row(
                entry.product.name,
                entry.vendor_name,
                entry.category_name or "-",
                format_money(entry.product.price),
                key=entry.product.id,
            )

    @on(Button.Pressed, "#btn-add-cart")
    @work()
    async def handle_add_to_cart(self) -> None:
        product_id = selected_row_key(self.query_one(DataTable))
        if product_id is None:
            self.notify("No product selected.", severity="warning")
            return
        try:
            await crud.add_to_cart(self.app.state.profile_id, product_id)
        except WriteFailure:
            self.notify("Failed to add to cart", severity="error")
            return
        self.notify("Added to cart!")
        self.app.post_message(CartChangedMessage())


class GuestListScreen(BaseScreen):
    ROUTE = "/user/guests"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-new-guest"):
            yield Input(placeholder="Guest name", id="input-guest-name")
            yield Input(placeholder="Guest email (optional)", id="input-guest-email")
            yield Button("Add Guest", id="btn-add-guest", variant="primary")
        yield DataTable(id="table-guests")
        yield Label("", id="label-guest-count")
        with Horizontal(id="hort-buttons"):
            yield Button("Remove", id="btn-remove-guest", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Email", "RSVP")
        self.load_guests()
        self.query_one("#input-guest-name").focus()

    @work(exclusive=True)
    async def load_guests(self) -> None:
        guests = await crud.list_guests(self.app.state.profile_id)
        table = self.query_one(DataTable)
        table.clear()
        for guest in guests:
            table.add_row(
                guest.guest_name,
                guest.guest_email or "-",
                guest.rsvp_status.capitalize(),
                key=guest.id,
            )
        self.query_one("#label-guest-count", Label).update(f"{len(guests)} guest(s)")

    @on(Button.Pressed, "#btn-add-guest")
    @on(Input.Submitted, "#input-guest-email")
    @work()
    async def handle_add_guest(self) -> None:
        name_input = self.query_one("#input-guest-name", Input)
        email_input = self.query_one("#input-guest-email", Input)
        try:
            await crud.add_guest(
                self.app.state.profile_id, name_input.value, email_input.value
            )
        except ValueError as exc:
            name_input.add_class("-invalid")
            self.notify(str(exc), severity="error")
            return
        except WriteFailure:
            self.notify("Failed to add guest", severity="error")
            return

        name_input.remove_class("-invalid")
        name_input.value = ""
        email_input.value = ""
        name_input.focus()
        self.notify("Guest added")
        self.load_guests()

    @on(Button.Pressed, "#btn-remove-guest")
    @work()
    async def handle_remove_guest(self) -> None:
        guest_id = selected_row_key(self.query_one(DataTable))
        if guest_id is None:
            self.notify("No guest selected.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Remove this guest from the list?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        try:
            await crud.delete_guest(guest_id)
        except WriteFailure:
            self.notify("Failed to remove guest", severity="error")
            return
        self.load_guests()


class OrdersScreen(BaseScreen):
    """
    Users browse their orders and the items of the highlighted one.
    """

    ROUTE = "/user/orders"

    def __init__(self) -> None:
        super().__init__()
        self._orders: Dict[str, Order] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Total")
        self.load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(NewOrderMessage)
    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        orders = await crud.list_orders(self.app.state.profile_id)
        self._orders = {o.id: o for o in orders}

        table = self.query_one(DataTable)
        table.clear()
        for order in orders:
            table.add_row(
                order.id[:8],
                f"{order.created_at:%Y-%m-%d %H:%M}",
                order.status.capitalize(),
                format_money(order.total_amount),
                key=order.id,
            )
        self.show_detail()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self.show_detail()

    @work(exclusive=True, group="detail")
    async def show_detail(self) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        order = self._orders.get(selected_row_key(self.query_one(DataTable)) or "")
        if order is None:
            await viewer.document.update("No orders yet.")
            return

        items = await crud.get_order_items(order.id)
        rows: List[List[str]] = []
        for item in items:
            product = await crud.get_product(item.product_id) if item.product_id else None
            rows.append(
                [
                    product.name if product else "(deleted product)",
                    str(item.quantity),
                    format_money(item.price),
                    format_money(item.price * item.quantity),
                ]
            )
        md = (
            f"## Order {order.id}\n\n"
            f"- **Placed:** {order.created_at:%Y-%m-%d %H:%M}\n"
            f"- **Status:** {order.status.capitalize()}\n"
            f"- **Total:** {format_money(order.total_amount)}\n\n"
            + generate_markdown_table(
                ["Product", "Qty", "Price", "Subtotal"], rows, ["l", "r", "r", "r"]
            )
        )
        await viewer.document.update(md)
