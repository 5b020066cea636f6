from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Button, Label

from views.base_screen import BaseScreen


class NotFoundScreen(BaseScreen):
    ROUTE = "*"

    def __init__(self, path: str = ""):
        super().__init__()
        self.configure(show_sidebar=False)
        self.path = path

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-not-found"):
            yield Label("404", id="label-404")
            yield Label(f"Oops! Page not found: {self.path}")
            yield Button("Return to Home", id="btn-home", variant="primary")

    @on(Button.Pressed, "#btn-home")
    def handle_home(self):
        self.navigate("/")
