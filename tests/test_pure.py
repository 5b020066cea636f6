import unittest
from datetime import datetime

import db_case  # noqa: F401  (puts src/ on sys.path)

from db.models import CartLine, Product
from utils.pure import (
    add_months,
    format_money,
    generate_markdown_table,
    membership_offset,
    order_total,
)


def _product(price):
    return Product(
        id=f"p{price}",
        vendor_id="v",
        category_id=None,
        name="thing",
        price=price,
        image_url=None,
        is_active=True,
        created_at=datetime(2024, 1, 1),
    )


class PureTestCase(unittest.TestCase):
    def test_add_months_keeps_day(self):
        self.assertEqual(add_months(datetime(2024, 1, 15, 10, 30), 12), datetime(2025, 1, 15, 10, 30))
        self.assertEqual(add_months(datetime(2025, 1, 15), 6), datetime(2025, 7, 15))
        self.assertEqual(add_months(datetime(2024, 11, 5), 24), datetime(2026, 11, 5))

    def test_add_months_clamps_to_month_end(self):
        self.assertEqual(add_months(datetime(2024, 1, 31), 1), datetime(2024, 2, 29))
        self.assertEqual(add_months(datetime(2023, 1, 31), 1), datetime(2023, 2, 28))
        self.assertEqual(add_months(datetime(2024, 2, 29), 12), datetime(2025, 2, 28))

    def test_membership_offset(self):
        self.assertEqual(membership_offset("6_months"), 6)
        self.assertEqual(membership_offset("1_year"), 12)
        self.assertEqual(membership_offset("2_years"), 24)
        with self.assertRaises(ValueError):
            membership_offset("forever")

    def test_order_total(self):
        lines = [CartLine(_product(100), 2), CartLine(_product(50), 1)]
        self.assertEqual(order_total(lines), 250)
        self.assertEqual(order_total([]), 0)

    def test_format_money(self):
        self.assertEqual(format_money(250), "Rs/- 250.00")
        self.assertEqual(format_money(0.5), "Rs/- 0.50")

    def test_generate_markdown_table(self):
        md = generate_markdown_table(["Field", "Value"], [["Name", "Ann"], ["Qty", 2]], ["l", "r"])
        self.assertEqual(
            md.splitlines(),
            ["| Field | Value |", "| :--- | ---: |", "| Name | Ann |", "| Qty | 2 |"],
        )
        # first row doubles as the header
        self.assertEqual(generate_markdown_table(None, [["a", "b"]]).splitlines()[1], "| :---: | :---: |")
        self.assertEqual(generate_markdown_table(["a"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["a", "b"], [["1", "2"]], ["l"])


if __name__ == "__main__":
    unittest.main()
