from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import (
    Button,
    DataTable,
    Input,
    Label,
    Markdown,
    RadioButton,
    RadioSet,
    Select,
    TabbedContent,
    TabPane,
)

import db.crud as crud
from db.errors import NotFoundError, WriteFailure
from db.models import MEMBERSHIP_TYPES, Membership
from utils.pure import MEMBERSHIP_LABELS, generate_markdown_table


def _pressed_suffix(radio_set: RadioSet) -> Optional[str]:
    # buttons are named "<prefix>-<value>"
    button = radio_set.pressed_button
    if button is None or button.id is None:
        return None
    return button.id.split("-", 2)[-1]


def _duration_buttons(prefix: str):
    for i, membership_type in enumerate(MEMBERSHIP_TYPES):
        yield RadioButton(
            MEMBERSHIP_LABELS[membership_type],
            value=i == 0,
            id=f"{prefix}-{membership_type}",
        )


class ManageMemberships(Container):
    """
    Admin tools for vendor memberships: add, look up and extend/cancel, list.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._found: Optional[Membership] = None

    def compose(self) -> ComposeResult:
        with TabbedContent(id="tabs-memberships"):
            with TabPane("Add Membership", id="tab-add-membership"):
                with Vertical():
                    yield Label("Vendor")
                    yield Select([], prompt="Select vendor", id="select-vendor")
                    yield Label("Duration")
                    with RadioSet(id="radio-add-duration"):
                        yield from _duration_buttons("add-dur")
                    yield Button("Add Membership", id="btn-add-membership", variant="primary")

            with TabPane("Update Membership", id="tab-update-membership"):
                with Vertical():
                    yield Label("Membership Number (ID)")
                    with Horizontal(id="hort-membership-search"):
                        yield Input(placeholder="Enter membership ID", id="input-membership-id")
                        yield Button("Search", id="btn-search-membership")
                    with Vertical(id="div-found-membership", classes="hidden"):
                        yield Markdown("", id="md-membership")
                        with RadioSet(id="radio-update-action"):
                            yield RadioButton("Extend", value=True, id="action-do-extend")
                            yield RadioButton("Cancel Membership", id="action-do-cancel")
                        with RadioSet(id="radio-extend-duration"):
                            yield from _duration_buttons("ext-dur")
                        yield Button("Update Membership", id="btn-update-membership", variant="warning")

            with TabPane("All Memberships", id="tab-list-memberships"):
                yield DataTable(id="table-memberships")

    def on_mount(self) -> None:
        table = self.query_one("#table-memberships", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Vendor", "Type", "Status", "Expires")
        self.refresh_data()

    @work(exclusive=True, group="memberships")
    async def refresh_data(self) -> None:
        vendors = await crud.list_vendors()
        self.query_one("#select-vendor", Select).set_options(
            [(f"{v.name} ({v.email})", v.id) for v in vendors]
        )

        memberships = await crud.list_memberships()
        table = self.query_one("#table-memberships", DataTable)
        table.clear()
        for membership, vendor_name in memberships:
            table.add_row(
                membership.id[:8],
                vendor_name or "-",
                MEMBERSHIP_LABELS[membership.membership_type],
                membership.status.capitalize(),
                f"{membership.end_date:%Y-%m-%d}",
                key=membership.id,
            )

    @on(Button.Pressed, "#btn-add-membership")
    @work(exclusive=True)
    async def handle_add(self) -> None:
        vendor_id = self.query_one("#select-vendor", Select).value
        if not isinstance(vendor_id, str):
            self.notify("Select a vendor", severity="error")
            return
        membership_type = _pressed_suffix(self.query_one("#radio-add-duration", RadioSet))
        try:
            membership = await crud.add_membership(vendor_id, membership_type)
        except (WriteFailure, ValueError) as exc:
            self.notify(str(exc), severity="error")
            return
        self.notify(f"Membership added. Number: {membership.id}")
        self.refresh_data()

    @on(Button.Pressed, "#btn-search-membership")
    @on(Input.Submitted, "#input-membership-id")
    @work(exclusive=True)
    async def handle_search(self) -> None:
        membership_id = self.query_one("#input-membership-id", Input).value.strip()
        if not membership_id:
            self.notify("Enter membership number", severity="error")
            return
        try:
            self._found = await crud.get_membership(membership_id)
        except NotFoundError:
            self._found = None
            self.query_one("#div-found-membership").add_class("hidden")
            self.notify("Membership not found", severity="error")
            return
        await self._render_found()

    async def _render_found(self) -> None:
        membership = self._found
        vendor = await crud.get_profile(membership.vendor_id)
        rows = [
            ["Vendor", vendor.name if vendor else "-"],
            ["Type", MEMBERSHIP_LABELS[membership.membership_type]],
            ["Status", membership.status.capitalize()],
            ["Started", f"{membership.start_date:%Y-%m-%d}"],
            ["Expires", f"{membership.end_date:%Y-%m-%d}"],
        ]
        await self.query_one("#md-membership", Markdown).update(
            generate_markdown_table(["Field", "Value"], rows, ["l", "l"])
        )
        self.query_one("#div-found-membership").remove_class("hidden")

    @on(RadioSet.Changed, "#radio-update-action")
    def handle_action_changed(self, event: RadioSet.Changed) -> None:
        extend = _pressed_suffix(event.radio_set) == "extend"
        self.query_one("#radio-extend-duration").display = extend
        self.query_one("#btn-update-membership", Button).label = (
            "Extend Membership" if extend else "Cancel Membership"
        )

    @on(Button.Pressed, "#btn-update-membership")
    @work(exclusive=True)
    async def handle_update(self) -> None:
        if self._found is None:
            return
        action = _pressed_suffix(self.query_one("#radio-update-action", RadioSet))
        try:
            if action == "cancel":
                await crud.cancel_membership(self._found.id)
                self.notify("Membership cancelled")
            else:
                membership_type = _pressed_suffix(
                    self.query_one("#radio-extend-duration", RadioSet)
                )
                await crud.extend_membership(self._found.id, membership_type)
                self.notify("Membership extended")
        except (NotFoundError, WriteFailure) as exc:
            self.notify(str(exc), severity="error")
            return

        self._found = None
        self.query_one("#input-membership-id", Input).value = ""
        self.query_one("#div-found-membership").add_class("hidden")
        self.refresh_data()
