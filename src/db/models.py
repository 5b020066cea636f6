# provide dataclass models

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

Role = Literal["admin", "vendor", "user"]
MembershipType = Literal["6_months", "1_year", "2_years"]
MembershipStatus = Literal["active", "cancelled"]

ROLES = ("admin", "vendor", "user")
MEMBERSHIP_TYPES = ("6_months", "1_year", "2_years")


@dataclass(frozen=True)
class Identity:
    id: str
    email: str


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    identity: Identity
    created_at: datetime


@dataclass(frozen=True)
class Profile:
    id: str
    auth_id: str
    name: str
    email: str
    category_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True)
class Product:
    id: str
    vendor_id: str
    category_id: Optional[str]
    name: str
    price: float
    image_url: Optional[str]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class CatalogEntry:
    product: Product
    vendor_name: str
    category_name: Optional[str]


@dataclass(frozen=True)
class CartItem:
    id: str
    user_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CartLine:
    """A product and the quantity wanted, as seen when the cart was read."""

    product: Product
    quantity: int
    item_id: Optional[str] = None


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    total_amount: float
    status: str
    created_at: datetime


@dataclass(frozen=True)
class OrderItem:
    id: str
    order_id: str
    product_id: Optional[str]  # None once the product is deleted
    vendor_id: str
    quantity: int
    price: float  # unit price at time of order


@dataclass(frozen=True)
class VendorTransaction:
    item: OrderItem
    product_name: Optional[str]
    order_status: str
    ordered_at: datetime


@dataclass(frozen=True)
class Membership:
    id: str
    vendor_id: str
    membership_type: MembershipType
    start_date: datetime
    end_date: datetime
    status: MembershipStatus
    created_at: datetime


@dataclass(frozen=True)
class GuestListEntry:
    id: str
    user_id: str
    guest_name: str
    guest_email: Optional[str]
    rsvp_status: str
    created_at: datetime
