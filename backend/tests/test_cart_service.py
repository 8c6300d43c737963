import unittest
from decimal import Decimal

from branchwise.errors import InsufficientStock, InvalidAmount, LineNotFound, OutOfStock
from branchwise.models import CartLine, LineDiscount, Product
from branchwise.services.cart_service import Cart, calculate_totals


TAX_11 = Decimal("0.11")


def product(id=1, name="Rice 5kg", price="100000", quantity=10, cost_price="80000"):
    return Product(id=id, name=name, price=Decimal(price), cost_price=Decimal(cost_price), quantity=quantity)


class CartAddProductTests(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()

    def test_new_line_starts_at_one_unit_with_catalog_price(self):
        line = self.cart.add_product(product())
        self.assertEqual(line.quantity, 1)
        self.assertEqual(line.original_price, Decimal("100000"))
        self.assertEqual(line.current_price, Decimal("100000"))
        self.assertEqual(line.available_quantity, 10)

    def test_adding_same_product_increments_line(self):
        self.cart.add_product(product())
        self.cart.add_product(product())
        self.assertEqual(len(self.cart), 1)
        self.assertEqual(self.cart.find(1).quantity, 2)

    def test_out_of_stock_product_is_rejected(self):
        with self.assertRaises(OutOfStock):
            self.cart.add_product(product(quantity=0))
        self.assertTrue(self.cart.is_empty)

    def test_exceeding_stock_leaves_cart_unchanged(self):
        oil = product(id=2, name="Cooking Oil", price="35000", quantity=2)
        self.cart.add_product(oil)
        self.cart.add_product(oil)

        with self.assertRaises(InsufficientStock) as ctx:
            self.cart.add_product(oil)

        self.assertEqual(ctx.exception.available, 2)
        self.assertEqual(self.cart.find(2).quantity, 2)


class CartQuantityTests(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()
        self.cart.add_product(product(quantity=5))

    def test_set_quantity_within_stock(self):
        update = self.cart.set_quantity(1, 3)
        self.assertEqual(update.applied, 3)
        self.assertIsNone(update.warning)
        self.assertEqual(self.cart.find(1).quantity, 3)

    def test_zero_or_negative_removes_line(self):
        update = self.cart.set_quantity(1, 0)
        self.assertTrue(update.removed)
        self.assertTrue(self.cart.is_empty)

        self.cart.add_product(product(quantity=5))
        self.cart.set_quantity(1, -4)
        self.assertTrue(self.cart.is_empty)

    def test_above_stock_clamps_and_warns(self):
        update = self.cart.set_quantity(1, 9)
        self.assertEqual(update.requested, 9)
        self.assertEqual(update.applied, 5)
        self.assertIsInstance(update.warning, InsufficientStock)
        self.assertEqual(self.cart.find(1).quantity, 5)

    def test_clamp_to_zero_stock_removes_line(self):
        self.cart.refresh_stock([product(quantity=0)])
        update = self.cart.set_quantity(1, 2)
        self.assertTrue(update.removed)
        self.assertIsNotNone(update.warning)
        self.assertTrue(self.cart.is_empty)

    def test_non_integer_quantity_is_invalid(self):
        with self.assertRaises(InvalidAmount):
            self.cart.set_quantity(1, "two")
        self.assertEqual(self.cart.find(1).quantity, 1)

    def test_unknown_line(self):
        with self.assertRaises(LineNotFound):
            self.cart.set_quantity(99, 1)


class CartDiscountTests(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()
        self.cart.add_product(product())

    def test_nominal_discount(self):
        line = self.cart.apply_line_discount(1, "nominal", 15000)
        self.assertEqual(line.current_price, Decimal("85000"))

    def test_percentage_discount(self):
        line = self.cart.apply_line_discount(1, "percentage", 10)
        self.assertEqual(line.discount_amount, Decimal("10000"))
        self.assertEqual(line.current_price, Decimal("90000"))

    def test_nominal_discount_is_capped_at_original_price(self):
        line = self.cart.apply_line_discount(1, "nominal", 250000)
        self.assertEqual(line.discount_amount, Decimal("100000"))
        self.assertEqual(line.current_price, Decimal("0"))

    def test_percentage_above_100_is_rejected(self):
        with self.assertRaises(InvalidAmount):
            self.cart.apply_line_discount(1, "percentage", 150)
        self.assertEqual(self.cart.find(1).current_price, Decimal("100000"))

    def test_negative_and_non_numeric_values_are_rejected(self):
        for value in (-5, "abc", None):
            with self.assertRaises(InvalidAmount):
                self.cart.apply_line_discount(1, "nominal", value)

    def test_unknown_discount_type_is_rejected(self):
        with self.assertRaises(InvalidAmount):
            self.cart.apply_line_discount(1, "bogo", 1)

    def test_clear_discount_restores_price(self):
        self.cart.apply_line_discount(1, "percentage", 50)
        line = self.cart.clear_line_discount(1)
        self.assertEqual(line.current_price, Decimal("100000"))

    def test_price_bounds_hold_for_any_discount(self):
        for discount in (
            LineDiscount("nominal", Decimal("0")),
            LineDiscount("nominal", Decimal("99999.99")),
            LineDiscount("nominal", Decimal("1000000")),
            LineDiscount("percentage", Decimal("0")),
            LineDiscount("percentage", Decimal("33.3")),
            LineDiscount("percentage", Decimal("100")),
        ):
            line = CartLine(1, "Rice", Decimal("100000"), Decimal("0"), quantity=3, discount=discount)
            self.assertGreaterEqual(line.current_price, 0)
            self.assertLessEqual(line.current_price, line.original_price)
            self.assertEqual(line.subtotal, line.current_price * line.quantity)


class CalculateTotalsTests(unittest.TestCase):
    def setUp(self):
        self.cart = Cart()
        self.cart.add_product(product())
        self.cart.set_quantity(1, 2)

    def test_two_units_at_eleven_percent_tax(self):
        totals = self.cart.totals(TAX_11)
        self.assertEqual(totals.subtotal_after_item_discounts, Decimal("200000"))
        self.assertEqual(totals.tax, Decimal("22000"))
        self.assertEqual(totals.grand_total, Decimal("222000"))
        self.assertEqual(totals.item_count, 2)
        self.assertEqual(totals.total_cost, Decimal("160000"))

    def test_ten_percent_line_discount(self):
        self.cart.apply_line_discount(1, "percentage", 10)
        totals = self.cart.totals(TAX_11)

        self.assertEqual(self.cart.find(1).current_price, Decimal("90000"))
        self.assertEqual(totals.subtotal_after_item_discounts, Decimal("180000"))
        self.assertEqual(totals.tax, Decimal("19800"))
        self.assertEqual(totals.grand_total, Decimal("199800"))
        self.assertEqual(totals.total_item_discount, Decimal("20000"))

    def test_shipping_and_voucher(self):
        totals = self.cart.totals(TAX_11, Decimal("10000"), Decimal("32000"))
        self.assertEqual(totals.grand_total, Decimal("200000"))
        self.assertEqual(totals.total_discount_amount, Decimal("32000"))
        self.assertEqual(
            totals.grand_total,
            totals.subtotal_after_item_discounts + totals.tax - totals.voucher_discount + totals.shipping_cost,
        )

    def test_voucher_larger_than_sale_goes_negative(self):
        totals = calculate_totals(self.cart.lines, Decimal("0"), Decimal("0"), Decimal("250000"))
        self.assertEqual(totals.grand_total, Decimal("-50000"))

    def test_empty_cart_totals_are_zero(self):
        totals = calculate_totals([], TAX_11)
        self.assertEqual(totals.grand_total, Decimal("0"))
        self.assertEqual(totals.item_count, 0)

    def test_totals_follow_line_edits(self):
        self.assertEqual(self.cart.totals(TAX_11).grand_total, Decimal("222000"))
        self.cart.set_quantity(1, 1)
        self.assertEqual(self.cart.totals(TAX_11).grand_total, Decimal("111000"))


if __name__ == "__main__":
    unittest.main()
