"""
Cart Manager

WHY: The cart is the only state a cashier edits line by line. Everything
shown on the till (discounts, tax, total due) is derived from it on every
read so the numbers can never drift from the lines.

INVARIANTS:
- 0 <= current_price <= original_price for every line
- subtotal == current_price * quantity, always recomputed
- a line never exceeds the last known available stock of its product
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from ..errors import InsufficientStock, InvalidAmount, LineNotFound, OutOfStock
from ..models import (
    CartLine,
    DISCOUNT_NOMINAL,
    DISCOUNT_PERCENTAGE,
    DISCOUNT_TYPES,
    LineDiscount,
    Product,
    SaleTotals,
)
from ..validation import parse_amount, parse_quantity


ZERO = Decimal("0")


@dataclass(frozen=True)
class QuantityUpdate:
    """
    Outcome of a quantity edit.

    A request above stock is clamped rather than rejected; `warning`
    carries the InsufficientStock signal for the cashier.
    """
    product_id: int
    requested: int
    applied: int
    line: CartLine | None
    warning: InsufficientStock | None = None

    @property
    def removed(self) -> bool:
        return self.line is None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "requested": self.requested,
            "applied": self.applied,
            "removed": self.removed,
            "line": self.line.to_dict() if self.line else None,
            "warning": self.warning.to_dict() if self.warning else None,
        }


class Cart:
    """Ordered collection of CartLine keyed by product id."""

    def __init__(self):
        self._lines: list[CartLine] = []

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(list(self._lines))

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def find(self, product_id: int) -> CartLine | None:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def _require(self, product_id: int) -> CartLine:
        line = self.find(product_id)
        if line is None:
            raise LineNotFound(product_id)
        return line

    # =========================================================================
    # LINE OPERATIONS
    # =========================================================================

    def add_product(self, product: Product) -> CartLine:
        """
        Add one unit of a product.

        Raises:
            OutOfStock: product has no stock at all
            InsufficientStock: one more unit would exceed stock (cart unchanged)
        """
        if product.quantity <= 0:
            raise OutOfStock(product.name)

        existing = self.find(product.id)
        if existing is not None:
            new_quantity = existing.quantity + 1
            if new_quantity > product.quantity:
                raise InsufficientStock(product.name, product.quantity)
            existing.quantity = new_quantity
            existing.available_quantity = product.quantity
            return existing

        line = CartLine(
            product_id=product.id,
            product_name=product.name,
            original_price=product.price,
            cost_price=product.cost_price,
            quantity=1,
            available_quantity=product.quantity,
        )
        self._lines.append(line)
        return line

    def set_quantity(self, product_id: int, new_quantity: Any) -> QuantityUpdate:
        """
        Set a line's quantity.

        <= 0 removes the line. Above the last known stock the quantity is
        clamped to that stock and the update carries a warning.
        """
        requested = parse_quantity(new_quantity)
        line = self._require(product_id)

        if requested <= 0:
            self.remove_line(product_id)
            return QuantityUpdate(product_id, requested, 0, None)

        if requested > line.available_quantity:
            warning = InsufficientStock(line.product_name, line.available_quantity)
            if line.available_quantity <= 0:
                self.remove_line(product_id)
                return QuantityUpdate(product_id, requested, 0, None, warning)
            line.quantity = line.available_quantity
            return QuantityUpdate(product_id, requested, line.quantity, line, warning)

        line.quantity = requested
        return QuantityUpdate(product_id, requested, requested, line)

    def remove_line(self, product_id: int) -> None:
        self._lines = [line for line in self._lines if line.product_id != product_id]

    def apply_line_discount(self, product_id: int, discount_type: str, value: Any) -> CartLine:
        """
        Discount one unit of a line.

        nominal: absolute amount; percentage: 0-100 of the original price.
        The effective amount is capped at the original price.
        """
        if discount_type not in DISCOUNT_TYPES:
            raise InvalidAmount(f"discount type must be one of {list(DISCOUNT_TYPES)}")
        amount = parse_amount(value, "discount value")
        if discount_type == DISCOUNT_PERCENTAGE and amount > 100:
            raise InvalidAmount("percentage discount cannot exceed 100")

        line = self._require(product_id)
        line.discount = LineDiscount(type=discount_type, value=amount)
        return line

    def clear_line_discount(self, product_id: int) -> CartLine:
        line = self._require(product_id)
        line.discount = LineDiscount(type=DISCOUNT_NOMINAL, value=ZERO)
        return line

    def clear(self) -> None:
        self._lines = []

    def refresh_stock(self, products: Iterable[Product]) -> None:
        """Record newer stock figures for products already in the cart."""
        by_id = {p.id: p.quantity for p in products}
        for line in self._lines:
            if line.product_id in by_id:
                line.available_quantity = by_id[line.product_id]

    def totals(self, tax_rate: Decimal, shipping_cost: Decimal = ZERO, voucher_discount: Decimal = ZERO) -> SaleTotals:
        return calculate_totals(self._lines, tax_rate, shipping_cost, voucher_discount)


# =============================================================================
# PURE CALCULATIONS
# =============================================================================

def calculate_totals(
    lines: Iterable[CartLine],
    tax_rate: Decimal,
    shipping_cost: Decimal = ZERO,
    voucher_discount: Decimal = ZERO,
) -> SaleTotals:
    """
    Derive every till figure from the lines.

    tax is charged on the subtotal after item discounts. The voucher is a
    session-level discount taken off once. No floor is applied to the
    grand total; finalization refuses a negative one.
    """
    lines = list(lines)
    total_item_discount = sum((line.discount_amount * line.quantity for line in lines), ZERO)
    subtotal = sum((line.subtotal for line in lines), ZERO)
    tax = subtotal * tax_rate
    total_cost = sum((line.line_cost for line in lines), ZERO)

    return SaleTotals(
        item_count=sum(line.quantity for line in lines),
        total_item_discount=total_item_discount,
        subtotal_after_item_discounts=subtotal,
        tax_rate=tax_rate,
        tax=tax,
        shipping_cost=shipping_cost,
        voucher_discount=voucher_discount,
        total_discount_amount=total_item_discount + voucher_discount,
        grand_total=subtotal + tax + shipping_cost - voucher_discount,
        total_cost=total_cost,
    )
