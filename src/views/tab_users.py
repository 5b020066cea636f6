from textual import work
from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import DataTable

import db.crud as crud


class ManageUsers(Container):
    """Every account with its role, newest first."""

    def compose(self) -> ComposeResult:
        yield DataTable(id="table-accounts")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Email", "Role", "Joined")
        self.load_accounts()

    @work(exclusive=True)
    async def load_accounts(self) -> None:
        accounts = await crud.list_accounts()
        table = self.query_one(DataTable)
        table.clear()
        for profile, role in accounts:
            table.add_row(
                profile.name,
                profile.email,
                (role or "none").capitalize(),
                f"{profile.created_at:%Y-%m-%d}",
                key=profile.id,
            )
