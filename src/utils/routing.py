"""
Route table and the access decision taken before any screen is built.

``guard`` is a pure function of the session snapshot and a route's access
requirement. It returns one of three variants: ``Wait`` (session still
resolving), ``RedirectTo(path)`` or ``Render``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Optional, Union

from db.models import Role
from utils.state import SessionState

ROOT_ROUTE = "/"
LOGIN_ROUTE = "/login"

ROLE_HOME: Dict[str, str] = {
    "admin": "/admin",
    "vendor": "/vendor",
    "user": "/user",
}


@dataclass(frozen=True)
class RouteAccess:
    kind: Literal["public", "guest_only", "role"]
    role: Optional[Role] = None


PUBLIC = RouteAccess("public")
GUEST_ONLY = RouteAccess("guest_only")


def require_role(role: Role) -> RouteAccess:
    return RouteAccess("role", role)


@dataclass(frozen=True)
class Wait:
    pass


@dataclass(frozen=True)
class RedirectTo:
    route: str


@dataclass(frozen=True)
class Render:
    pass


Decision = Union[Wait, RedirectTo, Render]


@dataclass(frozen=True)
class Route:
    path: str
    access: RouteAccess
    title: str


ROUTES: Dict[str, Route] = {
    route.path: route
    for route in (
        Route("/", GUEST_ONLY, "Welcome"),
        Route("/login", GUEST_ONLY, "Login"),
        Route("/signup/user", GUEST_ONLY, "User Sign Up"),
        Route("/signup/vendor", GUEST_ONLY, "Vendor Sign Up"),
        Route("/admin", require_role("admin"), "Admin Dashboard"),
        Route("/vendor", require_role("vendor"), "Vendor Dashboard"),
        Route("/vendor/items", require_role("vendor"), "Your Items"),
        Route("/vendor/items/new", require_role("vendor"), "Add New Item"),
        Route("/vendor/transactions", require_role("vendor"), "Transactions"),
        Route("/user", require_role("user"), "User Dashboard"),
        Route("/user/vendors", require_role("user"), "Vendors"),
        Route("/user/cart", require_role("user"), "Cart"),
        Route("/user/guests", require_role("user"), "Guest List"),
        Route("/user/orders", require_role("user"), "Order Status"),
    )
}

NOT_FOUND = Route("*", PUBLIC, "Not Found")


def resolve_route(path: str) -> Route:
    """Exact path lookup; unknown paths map to the not-found route."""
    return ROUTES.get(path, NOT_FOUND)


def guard(state: SessionState, access: RouteAccess) -> Decision:
    if access.kind == "public":
        return Render()
    if state.loading:
        return Wait()

    signed_in = state.identity is not None
    if access.kind == "guest_only":
        if signed_in and state.role is not None:
            return RedirectTo(ROLE_HOME[state.role])
        return Render()

    # role-gated
    if not signed_in:
        return RedirectTo(LOGIN_ROUTE)
    if state.role != access.role:
        return RedirectTo(ROOT_ROUTE)
    return Render()


def decide(state: SessionState, path: str) -> Decision:
    return guard(state, resolve_route(path).access)
