from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label

import db.crud as crud
from db.errors import WriteFailure
from utils.pure import format_money
from views.base_screen import BaseScreen, selected_row_key
from views.modal_dialog import DialogModal


class VendorItemsScreen(BaseScreen):
    """
    The vendor's own products, newest first, with delete.
    """

    ROUTE = "/vendor/items"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-products")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Delete", id="btn-delete", variant="error")
            yield Button("Add New Item", id="btn-new", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Price", "Status", "Added")
        self.load_products()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def load_products(self) -> None:
        products = await crud.list_vendor_products(self.app.state.profile_id)
        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.name,
                format_money(p.price),
                "Active" if p.is_active else "Inactive",
                f"{p.created_at:%Y-%m-%d}",
                key=p.id,
            )

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        product_id = selected_row_key(self.query_one(DataTable))
        if product_id is None:
            self.notify("No product selected.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete this product? It will disappear from the catalog.",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            return
        try:
            deleted = await crud.delete_product(product_id)
        except WriteFailure:
            self.notify("Failed to delete", severity="error")
            return
        if deleted:
            self.notify("Product deleted")
        self.load_products()

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.navigate("/vendor/items/new")


class VendorAddItemScreen(BaseScreen):
    ROUTE = "/vendor/items/new"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-new-product"):
            yield Label("Product Name")
            yield Input(placeholder="Product name", id="input-name")
            yield Label("Product Price (Rs/-)")
            yield Input(
                placeholder="0.00",
                id="input-price",
                type="number",
                validators=[Number(minimum=0.0)],
            )
            yield Label("Product Image URL")
            yield Input(placeholder="https://...", id="input-image")
            with Horizontal(id="hort-buttons"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Add The Product", id="btn-submit", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-name").focus()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        name = self.query_one("#input-name", Input).value.strip()
        price_input = self.query_one("#input-price", Input)
        image_url = self.query_one("#input-image", Input).value

        if not name or not price_input.value.strip():
            self.notify("Product name and price are required", severity="error")
            return
        if not price_input.is_valid:
            price_input.add_class("-invalid")
            price_input.focus()
            self.notify("Price must be a positive number", severity="error")
            return

        try:
            await crud.add_product(
                self.app.state.profile_id, name, float(price_input.value), image_url
            )
        except (ValueError, WriteFailure) as exc:
            self.notify(str(exc), severity="error")
            return

        self.notify("Product added!")
        self.navigate("/vendor/items")

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.navigate("/vendor")


class VendorTransactionsScreen(BaseScreen):
    """Order items sold by this vendor."""

    ROUTE = "/vendor/transactions"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-transactions")
        yield Label("", id="label-revenue")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Qty", "Price", "Total", "Status", "Date")
        self.load_transactions()

    @work(exclusive=True)
    async def load_transactions(self) -> None:
        rows = await crud.list_vendor_transactions(self.app.state.profile_id)
        table = self.query_one(DataTable)
        table.clear()
        revenue = 0.0
        for tx in rows:
            line_total = tx.item.price * tx.item.quantity
            revenue += line_total
            table.add_row(
                tx.product_name or "(deleted product)",
                tx.item.quantity,
                format_money(tx.item.price),
                format_money(line_total),
                tx.order_status.capitalize(),
                f"{tx.ordered_at:%Y-%m-%d}",
                key=tx.item.id,
            )
        self.query_one("#label-revenue", Label).update(
            f"Total sales: {format_money(revenue)}"
        )
