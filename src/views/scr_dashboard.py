from textual.app import ComposeResult
from textual.containers import Grid
from textual.widgets import Button

from views.base_screen import BaseScreen, menu_item_id


class DashboardScreen(BaseScreen):
    """
    Landing page of a role: one button per section of that role's menu.
    """

    ROLE = "user"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Grid(id="grid-dashboard"):
            for path, label in self.app.ROLE_MENUS[self.ROLE].items():
                if path == self.ROUTE:
                    continue
                yield Button(label, id="btn-" + menu_item_id(path), classes="tile")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        for path in self.app.ROLE_MENUS[self.ROLE]:
            if event.button.id == "btn-" + menu_item_id(path):
                self.navigate(path)
                return


class UserDashboardScreen(DashboardScreen):
    ROUTE = "/user"
    ROLE = "user"


class VendorDashboardScreen(DashboardScreen):
    ROUTE = "/vendor"
    ROLE = "vendor"
