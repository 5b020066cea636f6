from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

import db.crud as crud
from db.errors import WriteFailure
from db.models import CartLine
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_money, order_total
from views.base_screen import BaseScreen, selected_row_key
from views.modal_dialog import DialogModal


class CartScreen(BaseScreen):
    """
    Cart contents and ordering.

    The lines shown are the snapshot the order is placed from, so what the
    user confirmed is what gets recorded.
    """

    ROUTE = "/user/cart"

    def __init__(self) -> None:
        super().__init__()
        self._lines: List[CartLine] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-cart")
        yield Label(f"Total: {format_money(0)}", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Remove", id="btn-remove", variant="warning")
            yield Button("Place Order", id="btn-place-order", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Qty", "Price", "Subtotal")
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # must be exclusive, else rows get duplicated
    async def handle_cart_change(self) -> None:
        self._lines = await crud.list_cart(self.app.state.profile_id)

        table = self.query_one(DataTable)
        table.clear()
        for line in self._lines:
            table.add_row(
                line.product.name,
                line.quantity,
                format_money(line.product.price),
                format_money(line.product.price * line.quantity),
                key=line.item_id,
            )
        table.set_class(not self._lines, "no-items")
        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_money(order_total(self._lines))}"
        )

    @on(Button.Pressed, "#btn-remove")
    @work()
    async def handle_remove_item(self) -> None:
        item_id = selected_row_key(self.query_one(DataTable))
        if item_id is None:
            self.notify("Cart is empty.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        try:
            await crud.remove_cart_item(item_id)
        except WriteFailure:
            self.notify("Failed to remove item", severity="error")
            return
        self.notify("Item removed from cart.")
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-place-order")
    @work()
    async def handle_place_order(self) -> None:
        lines = list(self._lines)
        if not lines:
            self.notify("Cart is empty.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Place order for {format_money(order_total(lines))}?",
                primary_text="Place Order",
                secondary_text="Cancel",
            )
        ):
            return
        try:
            await crud.place_order(self.app.state.profile_id, lines)
        except WriteFailure:
            self.notify("Failed to place order", severity="error")
            return

        self.notify("Order placed!")
        self.app.post_message(NewOrderMessage())
        self.navigate("/user/orders")
