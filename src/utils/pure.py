import calendar
from datetime import datetime
from typing import Iterable, List, Literal, Optional

from db.models import MEMBERSHIP_TYPES, CartLine

MEMBERSHIP_MONTHS = {
    "6_months": 6,
    "1_year": 12,
    "2_years": 24,
}

MEMBERSHIP_LABELS = {
    "6_months": "6 Months",
    "1_year": "1 Year",
    "2_years": "2 Years",
}


def add_months(value: datetime, months: int) -> datetime:
    """
    Calendar month addition. The day of month is kept, clamped to the last
    day of the target month (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def membership_offset(membership_type: str) -> int:
    """Number of months a membership type is worth."""
    if membership_type not in MEMBERSHIP_TYPES:
        raise ValueError(f"Unknown membership type: {membership_type!r}")
    return MEMBERSHIP_MONTHS[membership_type]


def order_total(lines: Iterable[CartLine]) -> float:
    return sum(line.product.price * line.quantity for line in lines)


def format_money(amount: float) -> str:
    return f"Rs/- {amount:.2f}"


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Render rows as a Markdown table.

    Args:
        headers: column headers; when None the first row is used instead.
        rows: table body, cells are passed through ``str``.
        aligns: per-column alignment ('l', 'c', 'r'), centred by default.
    """
    if not rows:
        return ""
    if not headers:
        headers, rows = rows[0], rows[1:]

    cells = [[str(c) for c in row] for row in rows]
    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    markers = {"l": ":---", "c": ":---:", "r": "---:"}

    def line(parts) -> str:
        return "| " + " | ".join(str(p) for p in parts) + " |"

    return "\n".join(
        [line(headers), line(markers[a] for a in aligns), *(line(r) for r in cells)]
    )
