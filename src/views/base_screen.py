from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Label,
    ListItem,
    ListView,
    LoadingIndicator,
    Markdown,
)

import db.crud as crud
from utils.messages import NavigateMessage, SignOutRequestedMessage
from utils.pure import generate_markdown_table
from utils.routing import resolve_route
from views.modal_dialog import DialogModal, QuitDialogModal


def menu_item_id(path: str) -> str:
    # widget ids cannot contain "/"
    return "menu" + path.replace("/", "-")


def selected_row_key(table: DataTable) -> Optional[str]:
    """Key of the row under the cursor, or None for an empty table."""
    if table.row_count == 0:
        return None
    row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
    return row_key.value


class Sidebar(Container):
    _paths: dict = {}

    def compose(self) -> ComposeResult:
        yield Label("Account", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        state = self.app.state
        if not state.role:
            return

        self._paths = {menu_item_id(p): p for p in self.app.ROLE_MENUS[state.role]}
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(label), id=menu_item_id(path))
                for path, label in self.app.ROLE_MENUS[state.role].items()
            ]
        )
        self.highlight_item(self.screen.ROUTE)
        self.load_user_info()

    @work(exclusive=True)
    async def load_user_info(self) -> None:
        state = self.app.state
        profile = await crud.get_profile(state.profile_id)
        rows = [
            ["Name", profile.name if profile else "-"],
            ["Email", state.identity.email],
            ["Role", state.role.capitalize()],
        ]
        await self.query_one("#md-userinfo", Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

    def on_list_view_selected(self, event: ListView.Selected):
        path = self._paths.get(event.item.id)
        if path and path != self.screen.ROUTE:
            self.post_message(NavigateMessage(path))

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(SignOutRequestedMessage())

    def highlight_item(self, path: str):
        for item in self.query_one("#list-menu").children:
            item.highlighted = item.id == menu_item_id(path)


class BaseScreen(Screen):
    """
    Inherited by all route screens, contains common elements like
    headers, footers, sidebar, and keybindings.

    ROUTE is the path the screen is mounted for; the sub title comes from the
    route table.
    """

    ROUTE = "*"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.configure()

    def configure(self, show_sidebar: bool = True) -> None:
        self.sub_title = resolve_route(self.ROUTE).title
        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    def navigate(self, path: str) -> None:
        self.post_message(NavigateMessage(path))

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())


class LoadingScreen(Screen):
    """Shown while the session is still being resolved."""

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()
