from textual.app import ComposeResult
from textual.widgets import TabbedContent, TabPane

from views.base_screen import BaseScreen
from views.tab_memberships import ManageMemberships
from views.tab_users import ManageUsers


class AdminDashboardScreen(BaseScreen):
    ROUTE = "/admin"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-admin"):
            with TabPane("Memberships", id="tab-memberships"):
                yield ManageMemberships()
            with TabPane("Users & Vendors", id="tab-users"):
                yield ManageUsers()
