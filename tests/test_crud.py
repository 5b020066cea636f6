import unittest
from dataclasses import replace
from datetime import datetime, timedelta
from unittest import mock

from db_case import TempDbTestCase

from db import crud
from db import database as db_database
from db.errors import NotFoundError, WriteFailure
from db.models import CartLine


class CrudTestCase(TempDbTestCase):
    # ---------- Auth & provisioning ----------

    async def test_register_identity_provisions_profile_and_role(self):
        self.assertTrue(await crud.email_available("carol@example.com"))
        identity = await crud.register_identity(
            "carol@example.com", "hash", {"name": "Carol", "role": "vendor", "category_id": "cat-venue"}
        )
        self.assertFalse(await crud.email_available("carol@example.com"))

        profile = await crud.get_profile_by_auth_id(identity.id)
        self.assertEqual(profile.name, "Carol")
        self.assertEqual(profile.email, "carol@example.com")
        self.assertEqual(profile.category_id, "cat-venue")
        self.assertEqual(await crud.get_role(profile.id), "vendor")

        got_identity, password_hash = await crud.get_credentials("carol@example.com")
        self.assertEqual(got_identity, identity)
        self.assertEqual(password_hash, "hash")
        self.assertIsNone(await crud.get_credentials("nobody@example.com"))

    async def test_register_defaults_name_and_role(self):
        identity = await crud.register_identity("dave@example.com", "hash")
        profile = await crud.get_profile_by_auth_id(identity.id)
        self.assertEqual(profile.name, "dave")
        self.assertEqual(await crud.get_role(profile.id), "user")

    async def test_register_without_provisioning(self):
        identity = await crud.register_identity("ghost@example.com", "hash", provision=False)
        self.assertIsNone(await crud.get_profile_by_auth_id(identity.id))
        self.assertIsNone(await crud.get_role("no-such-profile"))

    async def test_duplicate_email_is_a_write_failure(self):
        await crud.register_identity("eve@example.com", "hash")
        with self.assertRaises(WriteFailure):
            await crud.register_identity("EVE@example.com", "hash")
        self.assertEqual(await self.count("profiles"), 1)

    async def test_auth_sessions(self):
        self.assertIsNone(await crud.get_current_session())
        identity = await crud.register_identity("frank@example.com", "hash")
        t0 = datetime(2024, 5, 1, 9, 0)

        first = await crud.create_auth_session(identity, now=t0)
        second = await crud.create_auth_session(identity, now=t0 + timedelta(minutes=5))
        current = await crud.get_current_session()
        self.assertEqual(current.access_token, second.access_token)
        self.assertNotEqual(first.access_token, second.access_token)
        self.assertEqual(current.identity, identity)

        self.assertEqual(await crud.end_auth_sessions(), 2)
        self.assertIsNone(await crud.get_current_session())
        self.assertEqual(await crud.end_auth_sessions(), 0)

    async def test_accounts_vendors_and_categories(self):
        await self.make_account("u@example.com", "user", "Uma")
        vendor = await self.make_account("v@example.com", "vendor", "Vic", "cat-music")
        await self.make_account("a@example.com", "admin", "Ada")

        accounts = await crud.list_accounts()
        self.assertEqual(
            sorted((p.name, role) for p, role in accounts),
            [("Ada", "admin"), ("Uma", "user"), ("Vic", "vendor")],
        )
        self.assertEqual([v.id for v in await crud.list_vendors()], [vendor.id])

        categories = await crud.list_categories()
        self.assertEqual(len(categories), 6)
        self.assertIn("cat-catering", {c.id for c in categories})
        self.assertIsNone(await crud.get_profile("missing"))

    # ---------- Products & catalog ----------

    async def test_products_inherit_vendor_category(self):
        vendor = await self.make_account("cake@example.com", "vendor", "Cakes", "cat-catering")
        product = await crud.add_product(vendor.id, "  Wedding cake ", 120.5, "")
        self.assertEqual(product.name, "Wedding cake")
        self.assertEqual(product.category_id, "cat-catering")
        self.assertIsNone(product.image_url)
        self.assertTrue(product.is_active)

        self.assertEqual(await crud.list_vendor_products(vendor.id), [product])
        self.assertEqual(await crud.get_product(product.id), product)

    async def test_add_product_rejects_bad_input(self):
        vendor = await self.make_account("v@example.com", "vendor")
        with self.assertRaises(ValueError):
            await crud.add_product(vendor.id, "   ", 10)
        with self.assertRaises(ValueError):
            await crud.add_product(vendor.id, "Cake", -1)
        with self.assertRaises(WriteFailure):
            await crud.add_product("no-such-vendor", "Cake", 10)

    async def test_catalog_filters_by_category(self):
        florist = await self.make_account("f@example.com", "vendor", "Flo", "cat-florist")
        dj = await self.make_account("dj@example.com", "vendor", "DJ", "cat-music")
        t0 = datetime(2024, 1, 1)
        roses = await crud.add_product(florist.id, "Roses", 30, now=t0)
        await crud.add_product(dj.id, "Night set", 500, now=t0 + timedelta(hours=1))

        everything = await crud.list_catalog()
        self.assertEqual([e.product.name for e in everything], ["Night set", "Roses"])

        flowers = await crud.list_catalog("cat-florist")
        self.assertEqual(len(flowers), 1)
        self.assertEqual(flowers[0].product, roses)
        self.assertEqual(flowers[0].vendor_name, "Flo")
        self.assertEqual(flowers[0].category_name, "Florist")

        self.assertTrue(await crud.delete_product(roses.id))
        self.assertFalse(await crud.delete_product(roses.id))
        self.assertEqual(await crud.list_catalog("cat-florist"), [])

    # ---------- Cart ----------

    async def test_cart_merges_quantities(self):
        user = await self.make_account("u@example.com")
        vendor = await self.make_account("v@example.com", "vendor")
        product = await crud.add_product(vendor.id, "Chairs", 5)

        await crud.add_to_cart(user.id, product.id)
        item = await crud.add_to_cart(user.id, product.id, 3)
        self.assertEqual(item.quantity, 4)

        lines = await crud.list_cart(user.id)
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].quantity, 4)
        self.assertEqual(lines[0].item_id, item.id)

        with self.assertRaises(ValueError):
            await crud.add_to_cart(user.id, product.id, 0)
        with self.assertRaises(WriteFailure):
            await crud.add_to_cart(user.id, "no-such-product")

        self.assertTrue(await crud.remove_cart_item(item.id))
        self.assertEqual(await crud.list_cart(user.id), [])

    async def test_clear_cart(self):
        user = await self.make_account("u@example.com")
        vendor = await self.make_account("v@example.com", "vendor")
        for name in ("A", "B"):
            product = await crud.add_product(vendor.id, name, 1)
            await crud.add_to_cart(user.id, product.id)
        self.assertEqual(await crud.clear_cart(user.id), 2)
        self.assertEqual(await crud.clear_cart(user.id), 0)

    # ---------- Orders ----------

    async def _user_with_cart(self):
        user = await self.make_account("buyer@example.com")
        vendor = await self.make_account("seller@example.com", "vendor", "Seller")
        tent = await crud.add_product(vendor.id, "Tent", 100)
        lights = await crud.add_product(vendor.id, "Lights", 50)
        await crud.add_to_cart(user.id, tent.id, 2)
        await crud.add_to_cart(user.id, lights.id, 1)
        return user, vendor

    async def test_place_order(self):
        user, vendor = await self._user_with_cart()
        lines = await crud.list_cart(user.id)

        order = await crud.place_order(user.id, lines)
        self.assertEqual(order.total_amount, 250)
        self.assertEqual(order.status, "pending")

        self.assertEqual(await crud.list_orders(user.id), [order])
        items = await crud.get_order_items(order.id)
        self.assertEqual(len(items), 2)
        self.assertEqual(sorted((i.quantity, i.price) for i in items), [(1, 50.0), (2, 100.0)])
        self.assertTrue(all(i.vendor_id == vendor.id for i in items))
        self.assertEqual(await crud.list_cart(user.id), [])

        sales = await crud.list_vendor_transactions(vendor.id)
        self.assertEqual({s.product_name for s in sales}, {"Tent", "Lights"})
        self.assertTrue(all(s.order_status == "pending" for s in sales))

    async def test_place_order_rolls_back_on_item_failure(self):
        user, _ = await self._user_with_cart()
        lines = await crud.list_cart(user.id)
        bogus = replace(lines[0].product, id="no-such-product")
        snapshot = lines + [CartLine(product=bogus, quantity=1)]

        with self.assertRaises(WriteFailure):
            await crud.place_order(user.id, snapshot)

        self.assertEqual(await crud.list_orders(user.id), [])
        self.assertEqual(await self.count("order_items"), 0)
        self.assertEqual(len(await crud.list_cart(user.id)), 2)

    async def test_place_order_reports_unreachable_store(self):
        user, _ = await self._user_with_cart()
        lines = await crud.list_cart(user.id)

        # a directory cannot be opened as a database file
        db_database.DB_PATH = self.temp_dir.name
        with self.assertRaises(WriteFailure):
            await crud.place_order(user.id, lines)

        db_database.DB_PATH = self.db_path
        self.assertEqual(await crud.list_orders(user.id), [])
        self.assertEqual(len(await crud.list_cart(user.id)), 2)

    async def test_place_order_with_empty_cart_writes_nothing(self):
        user = await self.make_account("u@example.com")
        with mock.patch.object(crud, "connect", side_effect=AssertionError("connected")):
            self.assertIsNone(await crud.place_order(user.id, []))
        self.assertEqual(await self.count("orders"), 0)

    async def test_order_items_survive_product_deletion(self):
        user, vendor = await self._user_with_cart()
        order = await crud.place_order(user.id, await crud.list_cart(user.id))
        for product in await crud.list_vendor_products(vendor.id):
            await crud.delete_product(product.id)

        items = await crud.get_order_items(order.id)
        self.assertEqual(len(items), 2)
        self.assertTrue(all(i.product_id is None for i in items))
        sales = await crud.list_vendor_transactions(vendor.id)
        self.assertTrue(all(s.product_name is None for s in sales))

    # ---------- Memberships ----------

    async def test_membership_add_extend_cancel(self):
        vendor = await self.make_account("v@example.com", "vendor", "Vera")
        membership = await crud.add_membership(vendor.id, "1_year", now=datetime(2024, 1, 15))
        self.assertEqual(membership.end_date.date(), datetime(2025, 1, 15).date())
        self.assertEqual(membership.status, "active")
        self.assertEqual(await crud.get_membership(f"  {membership.id} "), membership)

        extended = await crud.extend_membership(membership.id, "6_months")
        self.assertEqual(extended.end_date.date(), datetime(2025, 7, 15).date())
        self.assertEqual(extended.membership_type, "6_months")
        self.assertEqual(extended.status, "active")
        self.assertEqual(await crud.get_membership(membership.id), extended)

        cancelled = await crud.cancel_membership(membership.id)
        self.assertEqual(cancelled.status, "cancelled")
        self.assertEqual(cancelled.start_date, extended.start_date)
        self.assertEqual(cancelled.end_date, extended.end_date)

        listed = await crud.list_memberships()
        self.assertEqual(listed, [(cancelled, "Vera")])

    async def test_membership_month_clamping(self):
        vendor = await self.make_account("v@example.com", "vendor")
        membership = await crud.add_membership(vendor.id, "6_months", now=datetime(2024, 8, 31))
        self.assertEqual(membership.end_date.date(), datetime(2025, 2, 28).date())

    async def test_membership_errors(self):
        vendor = await self.make_account("v@example.com", "vendor")
        with self.assertRaises(NotFoundError):
            await crud.get_membership("does-not-exist")
        with self.assertRaises(NotFoundError):
            await crud.extend_membership("does-not-exist", "1_year")
        with self.assertRaises(NotFoundError):
            await crud.cancel_membership("does-not-exist")
        with self.assertRaises(ValueError):
            await crud.add_membership(vendor.id, "3_weeks")
        with self.assertRaises(WriteFailure):
            await crud.add_membership("no-such-vendor", "1_year")

    # ---------- Guest list ----------

    async def test_guest_list(self):
        user = await self.make_account("host@example.com")
        t0 = datetime(2024, 6, 1)
        first = await crud.add_guest(user.id, " Grace ", "grace@example.com", now=t0)
        second = await crud.add_guest(user.id, "Heidi", "  ", now=t0 + timedelta(seconds=1))
        self.assertEqual(first.guest_name, "Grace")
        self.assertEqual(first.rsvp_status, "pending")
        self.assertIsNone(second.guest_email)

        self.assertEqual(await crud.list_guests(user.id), [first, second])
        with self.assertRaises(ValueError):
            await crud.add_guest(user.id, "  ")

        self.assertTrue(await crud.delete_guest(first.id))
        self.assertFalse(await crud.delete_guest(first.id))
        self.assertEqual(await crud.list_guests(user.id), [second])


if __name__ == "__main__":
    unittest.main()
