# src/db/crud.py
from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiosqlite

from db import models
from db.database import connect
from db.errors import NotFoundError, WriteFailure
from utils.logger import get_logger
from utils.pure import add_months, membership_offset, order_total

_logger = get_logger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _profile(row) -> models.Profile:
    return models.Profile(
        id=row["id"],
        auth_id=row["auth_id"],
        name=row["name"],
        email=row["email"],
        category_id=row["category_id"],
        created_at=_dt(row["created_at"]),
    )


def _product(row) -> models.Product:
    return models.Product(
        id=row["id"],
        vendor_id=row["vendor_id"],
        category_id=row["category_id"],
        name=row["name"],
        price=float(row["price"]),
        image_url=row["image_url"],
        is_active=bool(row["is_active"]),
        created_at=_dt(row["created_at"]),
    )


def _order(row) -> models.Order:
    return models.Order(
        id=row["id"],
        user_id=row["user_id"],
        total_amount=float(row["total_amount"]),
        status=row["status"],
        created_at=_dt(row["created_at"]),
    )


def _order_item(row) -> models.OrderItem:
    return models.OrderItem(
        id=row["id"],
        order_id=row["order_id"],
        product_id=row["product_id"],
        vendor_id=row["vendor_id"],
        quantity=int(row["quantity"]),
        price=float(row["price"]),
    )


def _membership(row) -> models.Membership:
    return models.Membership(
        id=row["id"],
        vendor_id=row["vendor_id"],
        membership_type=row["membership_type"],
        start_date=_dt(row["start_date"]),
        end_date=_dt(row["end_date"]),
        status=row["status"],
        created_at=_dt(row["created_at"]),
    )


def _guest(row) -> models.GuestListEntry:
    return models.GuestListEntry(
        id=row["id"],
        user_id=row["user_id"],
        guest_name=row["guest_name"],
        guest_email=row["guest_email"],
        rsvp_status=row["rsvp_status"],
        created_at=_dt(row["created_at"]),
    )


async def _write(sql: str, params: tuple, failure: str) -> int:
    """Run a single write statement and commit it; returns the rowcount."""
    try:
        async with connect() as conn:
            cur = await conn.execute(sql, params)
            await conn.commit()
            return cur.rowcount
    except aiosqlite.Error as exc:
        _logger.warning(f"{failure}: {exc}")
        raise WriteFailure(failure) from exc


# ---------------------------
# Auth & Provisioning
# ---------------------------


async def email_available(email: str) -> bool:
    """True if no identity is registered with the given email."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT 1 FROM auth_users WHERE email = ? LIMIT 1;", (email.strip(),)
        )
        row = await cur.fetchone()
        await cur.close()
        return row is None


async def get_credentials(email: str) -> Optional[Tuple[models.Identity, str]]:
    """Return (identity, password_hash) for an email, or None."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, email, password_hash FROM auth_users WHERE email = ?;",
            (email.strip(),),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return models.Identity(id=row["id"], email=row["email"]), row["password_hash"]


async def _provision_profile(
    conn: aiosqlite.Connection,
    identity: models.Identity,
    metadata: Dict[str, Any],
    now: datetime,
) -> str:
    """Create the profile and role rows that belong to a fresh identity."""
    profile_id = _new_id()
    name = (metadata.get("name") or "").strip() or identity.email.split("@")[0]
    await conn.execute(
        """
        INSERT INTO profiles(id, auth_id, name, email, category_id, created_at)
        VALUES (?, ?, ?, ?, ?, ?);
        """,
        (
            profile_id,
            identity.id,
            name,
            identity.email,
            metadata.get("category_id") or None,
            _ts(now),
        ),
    )
    await conn.execute(
        "INSERT INTO user_roles(id, user_id, role) VALUES (?, ?, ?);",
        (_new_id(), profile_id, metadata.get("role") or "user"),
    )
    return profile_id


async def register_identity(
    email: str,
    password_hash: str,
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
    provision: bool = True,
) -> models.Identity:
    """
    Create an identity. Unless ``provision`` is False, its profile and role
    are created in the same transaction from ``metadata`` (name, role,
    category_id).
    """
    metadata = metadata or {}
    now = now or datetime.now()
    identity = models.Identity(id=_new_id(), email=email.strip())
    try:
        async with connect() as conn:
            await conn.execute(
                """
                INSERT INTO auth_users(id, email, password_hash, metadata, created_at)
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    identity.id,
                    identity.email,
                    password_hash,
                    json.dumps(metadata),
                    _ts(now),
                ),
            )
            if provision:
                await _provision_profile(conn, identity, metadata, now)
            await conn.commit()
    except aiosqlite.Error as exc:
        _logger.warning(f"Could not register {identity.email}: {exc}")
        raise WriteFailure("Could not create account") from exc
    _logger.info(f"Registered identity {identity.id} ({identity.email})")
    return identity


async def create_auth_session(
    identity: models.Identity, now: Optional[datetime] = None
) -> models.AuthSession:
    now = now or datetime.now()
    token = uuid.uuid4().hex + uuid.uuid4().hex
    await _write(
        "INSERT INTO auth_sessions(access_token, user_id, created_at) VALUES (?, ?, ?);",
        (token, identity.id, _ts(now)),
        "Could not start session",
    )
    return models.AuthSession(access_token=token, identity=identity, created_at=now)


async def get_current_session() -> Optional[models.AuthSession]:
    """The most recent session that has not been ended, if any."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT s.access_token, s.created_at, u.id, u.email
            FROM auth_sessions s
            JOIN auth_users u ON u.id = s.user_id
            WHERE s.ended_at IS NULL
            ORDER BY s.created_at DESC
            LIMIT 1;
            """
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return models.AuthSession(
        access_token=row["access_token"],
        identity=models.Identity(id=row["id"], email=row["email"]),
        created_at=_dt(row["created_at"]),
    )


async def end_auth_sessions(now: Optional[datetime] = None) -> int:
    """End every open session; returns how many were closed."""
    now = now or datetime.now()
    return await _write(
        "UPDATE auth_sessions SET ended_at = ? WHERE ended_at IS NULL;",
        (_ts(now),),
        "Could not end session",
    )


# ---------------------------
# Profiles, Roles & Categories
# ---------------------------


async def get_profile_by_auth_id(auth_id: str) -> Optional[models.Profile]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, auth_id, name, email, category_id, created_at
            FROM profiles WHERE auth_id = ?;
            """,
            (auth_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _profile(row) if row else None


async def get_profile(profile_id: str) -> Optional[models.Profile]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, auth_id, name, email, category_id, created_at
            FROM profiles WHERE id = ?;
            """,
            (profile_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _profile(row) if row else None


async def get_role(profile_id: str) -> Optional[str]:
    """Return 'admin', 'vendor' or 'user' if a role row exists; otherwise None."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT role FROM user_roles WHERE user_id = ?;", (profile_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return row["role"] if row else None


async def list_accounts() -> List[Tuple[models.Profile, Optional[str]]]:
    """Every profile with its role, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT p.id, p.auth_id, p.name, p.email, p.category_id, p.created_at, r.role
            FROM profiles p
            LEFT JOIN user_roles r ON r.user_id = p.id
            ORDER BY p.created_at DESC;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [(_profile(row), row["role"]) for row in rows]


async def list_vendors() -> List[models.Profile]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT p.id, p.auth_id, p.name, p.email, p.category_id, p.created_at
            FROM profiles p
            JOIN user_roles r ON r.user_id = p.id
            WHERE r.role = 'vendor'
            ORDER BY p.name;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_profile(row) for row in rows]


async def list_categories() -> List[models.Category]:
    async with connect() as conn:
        cur = await conn.execute("SELECT id, name FROM vendor_categories ORDER BY name;")
        rows = await cur.fetchall()
        await cur.close()
    return [models.Category(id=row["id"], name=row["name"]) for row in rows]


# ---------------------------
# Products
# ---------------------------


async def add_product(
    vendor_id: str,
    name: str,
    price: float,
    image_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.Product:
    """
    Add a product for a vendor. The product inherits the vendor's category.
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("Product name is required.")
    if price < 0:
        raise ValueError("Price cannot be negative.")
    now = now or datetime.now()
    product_id = _new_id()
    inserted = await _write(
        """
        INSERT INTO products(id, vendor_id, category_id, name, price, image_url, is_active, created_at)
        SELECT ?, id, category_id, ?, ?, ?, 1, ?
        FROM profiles WHERE id = ?;
        """,
        (product_id, name, float(price), (image_url or "").strip() or None, _ts(now), vendor_id),
        "Could not add product",
    )
    if not inserted:
        raise WriteFailure(f"Vendor {vendor_id} does not exist")
    return await get_product(product_id)


async def get_product(product_id: str) -> Optional[models.Product]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, vendor_id, category_id, name, price, image_url, is_active, created_at
            FROM products WHERE id = ?;
            """,
            (product_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _product(row) if row else None


async def list_vendor_products(vendor_id: str) -> List[models.Product]:
    """A vendor's products, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, vendor_id, category_id, name, price, image_url, is_active, created_at
            FROM products
            WHERE vendor_id = ?
            ORDER BY created_at DESC;
            """,
            (vendor_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_product(row) for row in rows]


async def delete_product(product_id: str) -> bool:
    """Delete a product. Returns True if a row was removed."""
    deleted = await _write(
        "DELETE FROM products WHERE id = ?;", (product_id,), "Could not delete product"
    )
    return deleted > 0


async def list_catalog(category_id: Optional[str] = None) -> List[models.CatalogEntry]:
    """Active products with vendor and category names, optionally for one category."""
    sql = """
        SELECT p.id, p.vendor_id, p.category_id, p.name, p.price, p.image_url,
               p.is_active, p.created_at,
               v.name AS vendor_name, c.name AS category_name
        FROM products p
        JOIN profiles v ON v.id = p.vendor_id
        LEFT JOIN vendor_categories c ON c.id = p.category_id
        WHERE p.is_active = 1
    """
    params: tuple = ()
    if category_id:
        sql += " AND p.category_id = ?"
        params = (category_id,)
    sql += " ORDER BY p.created_at DESC;"
    async with connect() as conn:
        cur = await conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.CatalogEntry(
            product=_product(row),
            vendor_name=row["vendor_name"],
            category_name=row["category_name"],
        )
        for row in rows
    ]


# ---------------------------
# Cart Management
# ---------------------------


async def add_to_cart(
    user_id: str, product_id: str, quantity: int = 1, now: Optional[datetime] = None
) -> models.CartItem:
    """
    Put a product in the user's cart. If it is already there the quantities
    are added up in the existing row.
    """
    if quantity <= 0:
        raise ValueError("Quantity must be positive.")
    now = now or datetime.now()
    try:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT id, quantity FROM cart_items WHERE user_id = ? AND product_id = ?;",
                (user_id, product_id),
            )
            row = await cur.fetchone()
            await cur.close()
            if row:
                item_id, new_qty = row["id"], int(row["quantity"]) + quantity
                await conn.execute(
                    "UPDATE cart_items SET quantity = ? WHERE id = ?;",
                    (new_qty, item_id),
                )
            else:
                item_id, new_qty = _new_id(), quantity
                await conn.execute(
                    """
                    INSERT INTO cart_items(id, user_id, product_id, quantity, created_at)
                    VALUES (?, ?, ?, ?, ?);
                    """,
                    (item_id, user_id, product_id, new_qty, _ts(now)),
                )
            await conn.commit()
    except aiosqlite.Error as exc:
        _logger.warning(f"Could not add {product_id} to cart of {user_id}: {exc}")
        raise WriteFailure("Failed to add to cart") from exc
    return models.CartItem(
        id=item_id, user_id=user_id, product_id=product_id, quantity=new_qty
    )


async def list_cart(user_id: str) -> List[models.CartLine]:
    """The user's cart joined with current product data, oldest item first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT ci.id AS item_id, ci.quantity,
                   p.id, p.vendor_id, p.category_id, p.name, p.price, p.image_url,
                   p.is_active, p.created_at
            FROM cart_items ci
            JOIN products p ON p.id = ci.product_id
            WHERE ci.user_id = ?
            ORDER BY ci.created_at, ci.id;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.CartLine(
            product=_product(row), quantity=int(row["quantity"]), item_id=row["item_id"]
        )
        for row in rows
    ]


async def remove_cart_item(item_id: str) -> bool:
    removed = await _write(
        "DELETE FROM cart_items WHERE id = ?;", (item_id,), "Could not remove cart item"
    )
    return removed > 0


async def clear_cart(user_id: str) -> int:
    """Remove all items from the user's cart."""
    return await _write(
        "DELETE FROM cart_items WHERE user_id = ?;", (user_id,), "Could not clear cart"
    )


# ---------------------------
# Orders
# ---------------------------


async def place_order(
    user_id: str,
    lines: Sequence[models.CartLine],
    now: Optional[datetime] = None,
) -> Optional[models.Order]:
    """
    Turn a cart snapshot into an order.

    The total and the order items come from ``lines`` as given; prices are
    frozen onto the order items. The order row, the order items and the cart
    clear run in one transaction, so the cart is only emptied once its items
    are recorded. An empty snapshot writes nothing and returns None.

    Raises WriteFailure if any step fails; nothing is applied in that case.
    """
    lines = list(lines)
    if not lines:
        return None

    now = now or datetime.now()
    order = models.Order(
        id=_new_id(),
        user_id=user_id,
        total_amount=order_total(lines),
        status="pending",
        created_at=now,
    )
    try:
        async with connect() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO orders(id, user_id, total_amount, status, created_at)
                    VALUES (?, ?, ?, ?, ?);
                    """,
                    (order.id, user_id, order.total_amount, order.status, _ts(now)),
                )
            except aiosqlite.Error as exc:
                await conn.rollback()
                _logger.warning(f"Order insert failed for {user_id}: {exc}")
                raise WriteFailure("Failed to place order") from exc

            try:
                await conn.executemany(
                    """
                    INSERT INTO order_items(id, order_id, product_id, vendor_id, quantity, price)
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    [
                        (
                            _new_id(),
                            order.id,
                            line.product.id,
                            line.product.vendor_id,
                            line.quantity,
                            line.product.price,
                        )
                        for line in lines
                    ],
                )
                await conn.execute("DELETE FROM cart_items WHERE user_id = ?;", (user_id,))
                await conn.commit()
            except aiosqlite.Error as exc:
                await conn.rollback()
                _logger.warning(f"Order {order.id} rolled back: {exc}")
                raise WriteFailure("Failed to record order items") from exc
    except aiosqlite.Error as exc:
        # opening or closing the connection failed
        _logger.warning(f"Order for {user_id} not placed: {exc}")
        raise WriteFailure("Failed to place order") from exc

    _logger.info(
        f"Order {order.id} placed by {user_id}: {len(lines)} item(s), total {order.total_amount:.2f}"
    )
    return order


async def list_orders(user_id: str) -> List[models.Order]:
    """A user's orders, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, total_amount, status, created_at
            FROM orders
            WHERE user_id = ?
            ORDER BY created_at DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_order(row) for row in rows]


async def get_order_items(order_id: str) -> List[models.OrderItem]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, order_id, product_id, vendor_id, quantity, price
            FROM order_items WHERE order_id = ?;
            """,
            (order_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_order_item(row) for row in rows]


async def list_vendor_transactions(vendor_id: str) -> List[models.VendorTransaction]:
    """Order items sold by a vendor, most recent order first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT oi.id, oi.order_id, oi.product_id, oi.vendor_id, oi.quantity, oi.price,
                   p.name AS product_name, o.status, o.created_at
            FROM order_items oi
            JOIN orders o ON o.id = oi.order_id
            LEFT JOIN products p ON p.id = oi.product_id
            WHERE oi.vendor_id = ?
            ORDER BY o.created_at DESC, oi.id;
            """,
            (vendor_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.VendorTransaction(
            item=_order_item(row),
            product_name=row["product_name"],
            order_status=row["status"],
            ordered_at=_dt(row["created_at"]),
        )
        for row in rows
    ]


# ---------------------------
# Vendor Memberships
# ---------------------------


async def add_membership(
    vendor_id: str, membership_type: str, now: Optional[datetime] = None
) -> models.Membership:
    """Start an active membership now, ending after the type's month count."""
    months = membership_offset(membership_type)
    now = now or datetime.now()
    membership = models.Membership(
        id=_new_id(),
        vendor_id=vendor_id,
        membership_type=membership_type,
        start_date=now,
        end_date=add_months(now, months),
        status="active",
        created_at=now,
    )
    await _write(
        """
        INSERT INTO vendor_memberships(id, vendor_id, membership_type, start_date, end_date, status, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?);
        """,
        (
            membership.id,
            vendor_id,
            membership_type,
            _ts(membership.start_date),
            _ts(membership.end_date),
            membership.status,
            _ts(now),
        ),
        "Could not add membership",
    )
    _logger.info(f"Membership {membership.id} ({membership_type}) added for {vendor_id}")
    return membership


async def get_membership(membership_id: str) -> models.Membership:
    """Look a membership up by its exact id. Raises NotFoundError on a miss."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, vendor_id, membership_type, start_date, end_date, status, created_at
            FROM vendor_memberships WHERE id = ?;
            """,
            ((membership_id or "").strip(),),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        raise NotFoundError("Membership not found")
    return _membership(row)


async def extend_membership(membership_id: str, membership_type: str) -> models.Membership:
    """
    Push the end date out by the new type's months, counted from the current
    end date. The status becomes active and the type is replaced.
    """
    months = membership_offset(membership_type)
    current = await get_membership(membership_id)
    updated = models.Membership(
        id=current.id,
        vendor_id=current.vendor_id,
        membership_type=membership_type,
        start_date=current.start_date,
        end_date=add_months(current.end_date, months),
        status="active",
        created_at=current.created_at,
    )
    await _write(
        """
        UPDATE vendor_memberships
        SET end_date = ?, status = 'active', membership_type = ?
        WHERE id = ?;
        """,
        (_ts(updated.end_date), membership_type, current.id),
        "Could not extend membership",
    )
    _logger.info(f"Membership {current.id} extended to {updated.end_date:%Y-%m-%d}")
    return updated


async def cancel_membership(membership_id: str) -> models.Membership:
    current = await get_membership(membership_id)
    await _write(
        "UPDATE vendor_memberships SET status = 'cancelled' WHERE id = ?;",
        (current.id,),
        "Could not cancel membership",
    )
    _logger.info(f"Membership {current.id} cancelled")
    return models.Membership(
        id=current.id,
        vendor_id=current.vendor_id,
        membership_type=current.membership_type,
        start_date=current.start_date,
        end_date=current.end_date,
        status="cancelled",
        created_at=current.created_at,
    )


async def list_memberships() -> List[Tuple[models.Membership, Optional[str]]]:
    """All memberships with the vendor's name, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT m.id, m.vendor_id, m.membership_type, m.start_date, m.end_date,
                   m.status, m.created_at, p.name AS vendor_name
            FROM vendor_memberships m
            LEFT JOIN profiles p ON p.id = m.vendor_id
            ORDER BY m.created_at DESC;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [(_membership(row), row["vendor_name"]) for row in rows]


# ---------------------------
# Guest List
# ---------------------------


async def add_guest(
    user_id: str,
    name: str,
    email: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.GuestListEntry:
    name = (name or "").strip()
    if not name:
        raise ValueError("Guest name is required.")
    now = now or datetime.now()
    guest = models.GuestListEntry(
        id=_new_id(),
        user_id=user_id,
        guest_name=name,
        guest_email=(email or "").strip() or None,
        rsvp_status="pending",
        created_at=now,
    )
    await _write(
        """
        INSERT INTO guest_list(id, user_id, guest_name, guest_email, rsvp_status, created_at)
        VALUES (?, ?, ?, ?, ?, ?);
        """,
        (
            guest.id,
            user_id,
            guest.guest_name,
            guest.guest_email,
            guest.rsvp_status,
            _ts(now),
        ),
        "Could not add guest",
    )
    return guest


async def list_guests(user_id: str) -> List[models.GuestListEntry]:
    """A user's guests in the order they were added."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, guest_name, guest_email, rsvp_status, created_at
            FROM guest_list
            WHERE user_id = ?
            ORDER BY created_at, id;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_guest(row) for row in rows]


async def delete_guest(guest_id: str) -> bool:
    deleted = await _write(
        "DELETE FROM guest_list WHERE id = ?;", (guest_id,), "Could not remove guest"
    )
    return deleted > 0
