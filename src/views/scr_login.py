from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label

from db.errors import AuthError
from views.base_screen import BaseScreen


class LoginScreen(BaseScreen):
    """
    Email/password sign in for every role. Redirecting to the role's home is
    left to the route guard once the session resolves.
    """

    ROUTE = "/login"

    def __init__(self):
        super().__init__()
        self.configure(show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Label("User Id (Email)")
            yield Input(placeholder="user@example.com", id="input-login-email")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            with Horizontal(id="div-login-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Login", id="btn-login", variant="primary")
            yield Button("Don't have an account? Sign Up", id="btn-goto-signup")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not email or not pwd.strip():
            self.notify("All fields are required", severity="error")
            return

        try:
            await self.app.session.sign_in(email, pwd)
        except AuthError as exc:
            self.notify(str(exc) or "Login failed", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        self.notify("Logged in successfully")

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.navigate("/")

    @on(Button.Pressed, "#btn-goto-signup")
    def handle_goto_signup(self) -> None:
        self.navigate("/signup/user")
