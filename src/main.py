from typing import Callable, Dict, Optional, Type

from textual import on, work
from textual.app import App
from textual.binding import Binding
from textual.screen import Screen

from db.auth import AuthClient
from db.errors import AuthError
from utils.config import Settings, get_settings
from utils.logger import get_logger
from utils.messages import (
    NavigateMessage,
    QuitRequestedMessage,
    SessionChangedMessage,
    SignOutRequestedMessage,
)
from utils.routing import ROUTES, RedirectTo, Wait, decide, resolve_route
from utils.state import SessionManager, SessionState
from views.base_screen import LoadingScreen
from views.scr_admin import AdminDashboardScreen
from views.scr_cart import CartScreen
from views.scr_dashboard import UserDashboardScreen, VendorDashboardScreen
from views.scr_index import IndexScreen
from views.scr_login import LoginScreen
from views.scr_not_found import NotFoundScreen
from views.scr_signup import UserSignupScreen, VendorSignupScreen
from views.scr_user import GuestListScreen, OrdersScreen, UserVendorsScreen
from views.scr_vendor import (
    VendorAddItemScreen,
    VendorItemsScreen,
    VendorTransactionsScreen,
)

_logger = get_logger(__name__)


class MarketplaceApp(App):
    TITLE = "Event Marketplace"

    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    CSS_PATH = "styles/app.tcss"

    ROUTE_SCREENS: Dict[str, Type[Screen]] = {
        "/": IndexScreen,
        "/login": LoginScreen,
        "/signup/user": UserSignupScreen,
        "/signup/vendor": VendorSignupScreen,
        "/admin": AdminDashboardScreen,
        "/vendor": VendorDashboardScreen,
        "/vendor/items": VendorItemsScreen,
        "/vendor/items/new": VendorAddItemScreen,
        "/vendor/transactions": VendorTransactionsScreen,
        "/user": UserDashboardScreen,
        "/user/vendors": UserVendorsScreen,
        "/user/cart": CartScreen,
        "/user/guests": GuestListScreen,
        "/user/orders": OrdersScreen,
        "*": NotFoundScreen,
    }

    # sidebar menus, in display order
    ROLE_MENUS: Dict[str, Dict[str, str]] = {
        "admin": {"/admin": "Dashboard"},
        "vendor": {
            "/vendor": "Dashboard",
            "/vendor/items": "Your Items",
            "/vendor/items/new": "Add New Item",
            "/vendor/transactions": "Transactions",
        },
        "user": {
            "/user": "Dashboard",
            "/user/vendors": "Vendor",
            "/user/cart": "Cart",
            "/user/guests": "Guest List",
            "/user/orders": "Order Status",
        },
    }

    settings: Settings
    session: SessionManager

    def __init__(self, session: Optional[SessionManager] = None):
        super().__init__()
        self.settings = get_settings()
        self.session = session or SessionManager(AuthClient())
        self.current_path = "/"
        self._rendered_path: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def state(self) -> SessionState:
        return self.session.state

    async def on_mount(self) -> None:
        self._unsubscribe = self.session.subscribe(
            lambda state: self.post_message(SessionChangedMessage(state))
        )
        await self.push_screen(LoadingScreen())
        self.start_session()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.session.close()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @work(exclusive=True, group="session")
    async def start_session(self) -> None:
        await self._bootstrap_admin()
        try:
            await self.session.start()
        except AuthError as exc:
            self.notify(str(exc), severity="error")
        await self._render_route()

    async def _bootstrap_admin(self) -> None:
        """Create the configured admin account on first run."""
        if not (self.settings.admin_email and self.settings.admin_password):
            return
        try:
            created = await self.session.auth.ensure_account(
                self.settings.admin_email,
                self.settings.admin_password,
                {"name": self.settings.admin_name, "role": "admin"},
            )
        except AuthError as exc:
            _logger.error(f"Admin account not created: {exc} ({exc.code})")
            return
        if created:
            _logger.info(f"Admin account created for {created.email}")

    # ---------------------------
    # Routing
    # ---------------------------

    async def navigate(self, path: str) -> None:
        self.current_path = path
        await self._render_route()

    async def _render_route(self) -> None:
        """
        Run the guard for the current path and show whatever it decides.
        Redirects are followed until a path renders or the session is loading.
        """
        # every redirect lands on a path that renders for the same state
        for _ in range(len(ROUTES) + 1):
            decision = decide(self.state, self.current_path)
            if isinstance(decision, RedirectTo):
                _logger.debug(f"redirect {self.current_path} -> {decision.route}")
                self.current_path = decision.route
                continue
            break
        else:
            _logger.error(f"Redirect loop starting at {self.current_path}")
            return

        if isinstance(decision, Wait):
            self._rendered_path = None
            await self.switch_screen(LoadingScreen())
            return

        if self.current_path == self._rendered_path:
            return
        self._rendered_path = self.current_path
        route = resolve_route(self.current_path)
        screen_cls = self.ROUTE_SCREENS[route.path]
        screen = (
            screen_cls(self.current_path) if screen_cls is NotFoundScreen else screen_cls()
        )
        await self.switch_screen(screen)

    @on(NavigateMessage)
    async def handle_navigate(self, message: NavigateMessage) -> None:
        await self.navigate(message.path)

    @on(SessionChangedMessage)
    async def handle_session_changed(self, message: SessionChangedMessage) -> None:
        await self._render_route()

    @on(SignOutRequestedMessage)
    @work(exclusive=True, group="session")
    async def handle_sign_out(self) -> None:
        try:
            await self.session.sign_out()
        except AuthError as exc:
            self.notify(str(exc), severity="error")
            return
        self.notify("Logged out")

    @on(QuitRequestedMessage)
    def handle_quit(self) -> None:
        self.exit()


def run() -> None:
    MarketplaceApp().run()


if __name__ == "__main__":
    run()
