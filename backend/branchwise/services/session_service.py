"""
Sale Session Calculator

WHY: One cashier at one branch works through one session: an open shift,
a cart, the sale-level adjustments (shipping, voucher), the chosen
customer and payment path. The session composes the cart, shift and
payment services and is the only place that talks to the providers on
the cashier's behalf.

DESIGN:
- Environment (branch, user, tax rate) is injected as a TerminalContext
- Validation failures never mutate state and never reach the network
- Provider failures leave state exactly as it was before the call
- A finalized sale resets the sale inputs; the transaction id is kept
  so its receipt can be opened
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable

from ..api import (
    BankAccountProvider,
    CatalogProvider,
    CustomerProvider,
    SalesProvider,
    ShiftProvider,
)
from ..errors import (
    CustomerNotFound,
    InvalidAmount,
    NoTransaction,
    ProductNotFound,
    SaleInProgress,
)
from ..models import BankAccount, Branch, Customer, FinalizedSale, Product, ProductPage, Sale, SaleTotals, Shift, ShiftBreakdown
from ..validation import parse_amount, parse_id
from . import payment_service
from .cart_service import Cart, QuantityUpdate
from .concurrency import ProcessingGuard, new_idempotency_key
from .payment_service import METHOD_CASH, PAYMENT_METHODS, SaleDraft
from .shift_service import ShiftManager


logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (12, 24, 36, 48)
ZERO = Decimal("0")


@dataclass(frozen=True)
class TerminalContext:
    """Who is selling where, and the branch rules that shape the totals."""
    branch_id: int
    user_id: int
    tax_rate: Decimal = ZERO  # fraction, 0.11 for 11%
    currency: str = "IDR"
    credit_requires_due_date: bool = False

    @classmethod
    def for_branch(cls, branch: Branch, user_id: int, credit_requires_due_date: bool = False) -> "TerminalContext":
        return cls(
            branch_id=branch.id,
            user_id=user_id,
            tax_rate=branch.tax_fraction,
            currency=branch.currency,
            credit_requires_due_date=credit_requires_due_date,
        )


@dataclass(frozen=True)
class Providers:
    catalog: CatalogProvider
    customers: CustomerProvider
    shifts: ShiftProvider
    sales: SalesProvider
    bank_accounts: BankAccountProvider


class SaleSession:
    def __init__(self, context: TerminalContext, providers: Providers):
        self.context = context
        self.providers = providers
        self.cart = Cart()
        self.shift = ShiftManager(context.branch_id, providers.shifts, providers.sales)
        self.customer: Customer | None = None
        self.payment_method = METHOD_CASH
        self.shipping_cost = ZERO
        self.voucher_discount = ZERO
        self.last_transaction_id: int | None = None
        self._products: dict[int, Product] = {}
        self._bank_accounts: list[BankAccount] | None = None
        self._payment_guard = ProcessingGuard(SaleInProgress)
        self._lock = threading.RLock()

    # =========================================================================
    # SHIFT
    # =========================================================================

    @property
    def active_shift(self) -> Shift | None:
        return self.shift.active_shift

    def load(self) -> Shift | None:
        return self.shift.refresh()

    def start_shift(self, initial_cash: Any) -> Shift:
        return self.shift.start(initial_cash)

    def prepare_end_shift(self) -> ShiftBreakdown:
        return self.shift.prepare_end()

    def end_shift(self, actual_cash: Any) -> tuple[Shift, int]:
        """
        Close the shift; the cart is cleared with it.

        Returns the closed shift and the number of cart lines discarded.
        Rejected with SaleInProgress while a payment is being recorded; a
        payment submitted during the close is rejected the same way.
        """
        with self._payment_guard.hold():
            closed = self.shift.end(actual_cash)
            with self._lock:
                discarded = len(self.cart)
                if discarded:
                    logger.warning(
                        "Shift %s closed with %d cart line(s) in progress; cart discarded",
                        closed.id, discarded,
                    )
                self.cart.clear()
        return closed, discarded

    def shift_transactions(self) -> list[Sale]:
        return self.shift.transactions()

    # =========================================================================
    # CATALOG / CART
    # =========================================================================

    def search_products(self, query: str | None = None, page: Any = 1, page_size: Any = PAGE_SIZE_OPTIONS[0]) -> ProductPage:
        page_num = parse_id(page, "page") or 1
        size = parse_id(page_size, "page size") or PAGE_SIZE_OPTIONS[0]
        if size not in PAGE_SIZE_OPTIONS:
            raise InvalidAmount(f"page size must be one of {list(PAGE_SIZE_OPTIONS)}")

        result = self.providers.catalog.search(self.context.branch_id, query or None, page_num, size)
        with self._lock:
            self._products.update({p.id: p for p in result.items})
            self.cart.refresh_stock(result.items)
        return result

    def add_product(self, product: Product):
        self.shift.require_open()
        with self._lock:
            self._products[product.id] = product
            return self.cart.add_product(product)

    def add_product_by_id(self, product_id: int):
        self.shift.require_open()
        product = self._products.get(product_id)
        if product is None:
            product = self.providers.catalog.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
        return self.add_product(product)

    def set_quantity(self, product_id: int, quantity: Any) -> QuantityUpdate:
        with self._lock:
            return self.cart.set_quantity(product_id, quantity)

    def remove_line(self, product_id: int) -> None:
        with self._lock:
            self.cart.remove_line(product_id)

    def apply_line_discount(self, product_id: int, discount_type: str, value: Any):
        with self._lock:
            return self.cart.apply_line_discount(product_id, discount_type, value)

    def clear_line_discount(self, product_id: int):
        with self._lock:
            return self.cart.clear_line_discount(product_id)

    def clear_cart(self) -> None:
        with self._lock:
            self.cart.clear()

    # =========================================================================
    # SALE-LEVEL INPUTS
    # =========================================================================

    def set_adjustments(self, shipping_cost: Any = None, voucher_discount: Any = None) -> SaleTotals:
        """Set both sale-level adjustments; neither changes unless both are valid."""
        shipping = parse_amount(shipping_cost, "shipping cost", blank_as_zero=True)
        voucher = parse_amount(voucher_discount, "voucher discount", blank_as_zero=True)
        with self._lock:
            self.shipping_cost = shipping
            self.voucher_discount = voucher
            return self.totals

    def set_payment_method(self, method: str) -> str:
        if method not in PAYMENT_METHODS:
            raise InvalidAmount(f"payment method must be one of {list(PAYMENT_METHODS)}")
        self.payment_method = method
        return method

    def search_customers(self, query: str | None = None) -> list[Customer]:
        return self.providers.customers.search(self.context.branch_id, query or None)

    def select_customer(self, customer_id: Any) -> Customer | None:
        """Select a registered customer; None goes back to walk-in."""
        parsed = parse_id(customer_id, "customer id")
        if parsed is None:
            self.customer = None
            return None
        customer = self.providers.customers.get(parsed)
        if customer is None:
            raise CustomerNotFound(parsed)
        self.customer = customer
        return customer

    def bank_accounts(self, refresh: bool = False) -> list[BankAccount]:
        if self._bank_accounts is None or refresh:
            accounts = self.providers.bank_accounts.list(self.context.branch_id)
            self._bank_accounts = [a for a in accounts if a.is_active]
        return list(self._bank_accounts)

    @property
    def totals(self) -> SaleTotals:
        return self.cart.totals(self.context.tax_rate, self.shipping_cost, self.voucher_discount)

    # =========================================================================
    # PAYMENT
    # =========================================================================

    @property
    def processing(self) -> bool:
        return self._payment_guard.busy

    def pay_cash(self, amount_paid: Any, customer_name: str | None = None) -> tuple[int, FinalizedSale]:
        return self._submit(lambda draft: payment_service.finalize_cash(draft, amount_paid, customer_name))

    def pay_transfer(self, bank_account_id: Any, reference_number: str | None) -> tuple[int, FinalizedSale]:
        known = self._bank_accounts
        return self._submit(
            lambda draft: payment_service.finalize_transfer(draft, bank_account_id, reference_number, known)
        )

    def pay_credit(self, due_date: Any = None) -> tuple[int, FinalizedSale]:
        return self._submit(lambda draft: payment_service.finalize_credit(
            draft, due_date, require_due_date=self.context.credit_requires_due_date,
        ))

    def pay_exact(self, method: str, reference_number: str | None = None) -> tuple[int, FinalizedSale]:
        return self._submit(lambda draft: payment_service.finalize_exact(draft, method, reference_number))

    def _submit(self, build: Callable[[SaleDraft], FinalizedSale]) -> tuple[int, FinalizedSale]:
        with self._payment_guard.hold():
            with self._lock:
                draft = SaleDraft(
                    shift=self.shift.active_shift,
                    branch_id=self.context.branch_id,
                    lines=tuple(self.cart.lines),
                    totals=self.totals,
                    customer=self.customer,
                    idempotency_key=new_idempotency_key(),
                )
                sale = build(draft)

            sale_id = self.providers.sales.create(sale)

            with self._lock:
                self.last_transaction_id = sale_id
                self._reset_sale()
                # The sale is not in the prepared breakdown; end() needs a fresh one
                self.shift.breakdown = None

        logger.info(
            "Sale %s recorded on shift %s: %s %s",
            sale_id, sale.shift_id, sale.payment_method, sale.totals.grand_total,
        )
        return sale_id, sale

    def _reset_sale(self) -> None:
        self.cart.clear()
        self.payment_method = METHOD_CASH
        self.shipping_cost = ZERO
        self.voucher_discount = ZERO
        self.customer = None
        # Stock moved with the sale; re-fetch before trusting cached figures
        self._products.clear()

    def receipt(self, sale_id: int | None = None) -> Sale:
        target = sale_id or self.last_transaction_id
        if target is None:
            raise NoTransaction()
        sale = self.providers.sales.get(target)
        if sale is None:
            raise NoTransaction(f"Transaction #{target} not found")
        return sale

    # =========================================================================
    # STATE
    # =========================================================================

    def snapshot(self) -> dict:
        with self._lock:
            shift = self.shift.active_shift
            breakdown = self.shift.breakdown
            return {
                "branch_id": self.context.branch_id,
                "user_id": self.context.user_id,
                "currency": self.context.currency,
                "shift_state": self.shift.state,
                "shift": shift.to_dict() if shift else None,
                "end_shift_breakdown": breakdown.to_dict() if breakdown else None,
                "cart": [line.to_dict() for line in self.cart],
                "totals": self.totals.to_dict(),
                "customer": self.customer.to_dict() if self.customer else None,
                "payment_method": self.payment_method,
                "processing": self.processing,
                "last_transaction_id": self.last_transaction_id,
            }


class SessionRegistry:
    """
    One SaleSession per (user, branch).

    Sessions live in memory only; a restart rebuilds them from the back
    office on first access.
    """

    def __init__(self):
        self._sessions: dict[tuple[int, int], SaleSession] = {}
        self._lock = threading.Lock()

    def get_or_create(self, user_id: int, branch_id: int, factory: Callable[[], SaleSession]) -> SaleSession:
        """
        Return the session for (user, branch), building it on first use.

        The factory talks to the back office, so it runs outside the
        registry lock; if two first requests race, the first stored wins.
        """
        key = (user_id, branch_id)
        with self._lock:
            session = self._sessions.get(key)
        if session is not None:
            return session

        built = factory()
        with self._lock:
            return self._sessions.setdefault(key, built)

    def discard(self, user_id: int, branch_id: int) -> None:
        with self._lock:
            self._sessions.pop((user_id, branch_id), None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
