from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Button, Label

from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal


class IndexScreen(BaseScreen):
    """
    Landing page: log in or pick which kind of account to create.
    """

    ROUTE = "/"

    def __init__(self):
        super().__init__()
        self.configure(show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-landing"):
            yield Label("Event Marketplace", id="label-landing-title")
            yield Label(
                "Plan your event, book vendors, keep your guest list in one place.",
                id="label-landing-tagline",
            )
            yield Button("Login", id="btn-goto-login", variant="primary")
            yield Button("Sign up as User", id="btn-goto-signup-user")
            yield Button("Sign up as Vendor", id="btn-goto-signup-vendor")
            yield Button("Quit", id="btn-quit")

    def on_mount(self):
        self.query_one("#btn-goto-login").focus()

    @on(Button.Pressed, "#btn-goto-login")
    def handle_login(self):
        self.navigate("/login")

    @on(Button.Pressed, "#btn-goto-signup-user")
    def handle_signup_user(self):
        self.navigate("/signup/user")

    @on(Button.Pressed, "#btn-goto-signup-vendor")
    def handle_signup_vendor(self):
        self.navigate("/signup/vendor")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.app.push_screen(QuitDialogModal())
