import unittest
from decimal import Decimal

from api.models import CartEntry, OrderSummary
from cart.pricing import totals
from cart.reconciler import reconcile
from fakes import make_product


class TotalsTestCase(unittest.TestCase):
    def test_empty_cart_is_all_zero(self):
        self.assertEqual(
            totals([]),
            OrderSummary(item_count=0, subtotal=0, shipping=0, total=0),
        )

    def test_subtotal_is_exact_for_fractional_costs(self):
        catalog = [make_product("A", cost="0.10"), make_product("B", cost="19.99")]
        items = reconcile([CartEntry("A", 3), CartEntry("B", 7)], catalog)

        summary = totals(items)

        self.assertEqual(summary.item_count, 10)
        self.assertEqual(summary.subtotal, Decimal("140.23"))
        self.assertEqual(summary.total, Decimal("140.23"))

    def test_shipping_is_added_to_total(self):
        items = reconcile([CartEntry("A", 2)], [make_product("A", cost="25")])

        summary = totals(items, shipping=Decimal("4.50"))

        self.assertEqual(summary.subtotal, Decimal("50"))
        self.assertEqual(summary.shipping, Decimal("4.50"))
        self.assertEqual(summary.total, Decimal("54.50"))

    def test_empty_cart_is_not_charged_shipping(self):
        summary = totals([], shipping=Decimal("5"))
        self.assertEqual(
            summary,
            OrderSummary(item_count=0, subtotal=0, shipping=0, total=0),
        )

    def test_line_total(self):
        item = reconcile([CartEntry("A", 4)], [make_product("A", cost="2.25")])[0]
        self.assertEqual(item.line_total, Decimal("9.00"))
