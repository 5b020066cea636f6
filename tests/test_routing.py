import itertools
import unittest

import db_case  # noqa: F401  (puts src/ on sys.path)

from db.models import Identity
from utils.routing import (
    GUEST_ONLY,
    PUBLIC,
    ROUTES,
    RedirectTo,
    Render,
    Wait,
    decide,
    guard,
    require_role,
    resolve_route,
)
from utils.state import SessionState

IDENTITY = Identity(id="auth-1", email="someone@example.com")


def all_states():
    for present, role, loading in itertools.product(
        (True, False), ("admin", "vendor", "user", None), (True, False)
    ):
        yield SessionState(
            identity=IDENTITY if present else None,
            profile_id="profile-1" if present and role else None,
            role=role,
            loading=loading,
        )


ACCESSES = [PUBLIC, GUEST_ONLY, require_role("admin"), require_role("vendor"), require_role("user")]


class GuardTestCase(unittest.TestCase):
    def test_worked_examples(self):
        admin_only = require_role("admin")
        self.assertEqual(
            guard(SessionState(None, None, None, False), admin_only), RedirectTo("/login")
        )
        self.assertEqual(
            guard(SessionState(IDENTITY, "p", "vendor", False), admin_only), RedirectTo("/")
        )
        self.assertEqual(
            decide(SessionState(IDENTITY, "p", "admin", False), "/login"), RedirectTo("/admin")
        )

    def test_total_over_every_tuple(self):
        for state, access in itertools.product(all_states(), ACCESSES):
            with self.subTest(state=state, access=access):
                decision = guard(state, access)
                self.assertIsInstance(decision, (Wait, RedirectTo, Render))

    def test_loading_never_redirects(self):
        for state, access in itertools.product(all_states(), ACCESSES):
            if state.loading and access != PUBLIC:
                self.assertEqual(guard(state, access), Wait())

    def test_public_always_renders(self):
        for state in all_states():
            self.assertEqual(guard(state, PUBLIC), Render())

    def test_guest_only_routes(self):
        signed_out = SessionState(loading=False)
        self.assertEqual(guard(signed_out, GUEST_ONLY), Render())
        # signed in but no role resolved: nowhere better to send them
        unprovisioned = SessionState(IDENTITY, None, None, False)
        self.assertEqual(guard(unprovisioned, GUEST_ONLY), Render())
        for role, home in (("admin", "/admin"), ("vendor", "/vendor"), ("user", "/user")):
            state = SessionState(IDENTITY, "p", role, False)
            self.assertEqual(guard(state, GUEST_ONLY), RedirectTo(home))

    def test_role_routes(self):
        state = SessionState(IDENTITY, "p", "user", False)
        self.assertEqual(guard(state, require_role("user")), Render())
        self.assertEqual(guard(state, require_role("vendor")), RedirectTo("/"))
        unprovisioned = SessionState(IDENTITY, None, None, False)
        self.assertEqual(guard(unprovisioned, require_role("user")), RedirectTo("/"))

    def test_redirects_settle(self):
        paths = list(ROUTES) + ["/nowhere"]
        for state, path in itertools.product(all_states(), paths):
            with self.subTest(state=state, path=path):
                seen = [path]
                decision = decide(state, path)
                while isinstance(decision, RedirectTo):
                    self.assertNotIn(decision.route, seen)
                    seen.append(decision.route)
                    decision = decide(state, decision.route)
                self.assertLessEqual(len(seen), 3)


class RouteTableTestCase(unittest.TestCase):
    def test_resolve_route(self):
        self.assertEqual(resolve_route("/user/cart").access, require_role("user"))
        self.assertEqual(resolve_route("/vendor/items/new").title, "Add New Item")
        self.assertEqual(resolve_route("/").access, GUEST_ONLY)
        self.assertEqual(resolve_route("/does/not/exist").path, "*")
        self.assertEqual(resolve_route("/does/not/exist").access, PUBLIC)

    def test_every_route_is_gated(self):
        self.assertEqual(len(ROUTES), 14)
        for path, route in ROUTES.items():
            prefix = path.split("/")[1]
            if prefix in ("admin", "vendor", "user"):
                self.assertEqual(route.access, require_role(prefix), path)
            else:
                self.assertEqual(route.access, GUEST_ONLY, path)


if __name__ == "__main__":
    unittest.main()
