from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, Select

import db.crud as crud
from db.errors import AuthError
from views.base_screen import BaseScreen


class SignupScreen(BaseScreen):
    """
    Account creation. Subclasses pick the role; vendors also pick a category.
    On success the user is sent to the login page.
    """

    ROLE = "user"

    def __init__(self):
        super().__init__()
        self.configure(show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-reg"):
            yield Label("Name")
            yield Input(placeholder=f"{self.ROLE.capitalize()} name", id="input-reg-name")
            yield Label("Email")
            yield Input(placeholder=f"{self.ROLE}@example.com", id="input-reg-email")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-reg-pwd")
            if self.ROLE == "vendor":
                yield Label("Category")
                yield Select([], prompt="Select category", id="select-category")
            with Horizontal(id="div-reg-btns"):
                yield Button("Back", id="btn-back")
                yield Button("Sign Up", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-reg-name").focus()
        if self.ROLE == "vendor":
            self.load_categories()

    @work(exclusive=True)
    async def load_categories(self) -> None:
        categories = await crud.list_categories()
        self.query_one("#select-category", Select).set_options(
            [(c.name, c.id) for c in categories]
        )

    def _category(self) -> Optional[str]:
        if self.ROLE != "vendor":
            return None
        value = self.query_one("#select-category", Select).value
        return value if isinstance(value, str) else None

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value
        category_id = self._category()

        if not name or not email or not pwd.strip() or (
            self.ROLE == "vendor" and not category_id
        ):
            self.notify("All fields are mandatory", severity="error")
            return

        min_length = self.app.settings.min_password_length
        if len(pwd) < min_length:
            self.notify(
                f"Password must be at least {min_length} characters", severity="error"
            )
            return

        try:
            await self.app.session.sign_up(email, pwd, name, self.ROLE, category_id)
        except AuthError as exc:
            self.notify(str(exc) or "Signup failed", severity="error")
            return

        self.notify(f"{self.ROLE.capitalize()} account created!")
        self.navigate("/login")

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.navigate("/")


class UserSignupScreen(SignupScreen):
    ROUTE = "/signup/user"
    ROLE = "user"


class VendorSignupScreen(SignupScreen):
    ROUTE = "/signup/vendor"
    ROLE = "vendor"
