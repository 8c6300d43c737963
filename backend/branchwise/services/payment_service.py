"""
Payment Finalization

WHY: Each payment path has its own required inputs. All of them are
checked here, locally, before anything is sent to the back office, so a
rejected payment never reaches the network and never touches the cart.

PATHS:
- CASH: tendered >= total, change = tendered - total
- TRANSFER: bank account + reference number, paid exactly
- CARD / QRIS: paid exactly, optional reference
- CREDIT: registered customer (+ due date when required), nothing paid now
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from ..errors import (
    EmptyCart,
    IncompleteBankDetails,
    IncompleteCreditDetails,
    InsufficientPayment,
    InvalidAmount,
    ShiftNotActive,
)
from ..models import BankAccount, CartLine, Customer, FinalizedSale, SaleTotals, Shift
from ..time_utils import parse_iso_date
from ..validation import parse_amount, parse_id


# =============================================================================
# PAYMENT METHODS (CONSTANTS)
# =============================================================================

METHOD_CASH = "cash"
METHOD_CARD = "card"
METHOD_TRANSFER = "transfer"
METHOD_QRIS = "qris"
METHOD_CREDIT = "credit"

PAYMENT_METHODS = (
    METHOD_CASH,
    METHOD_CARD,
    METHOD_TRANSFER,
    METHOD_QRIS,
    METHOD_CREDIT,
)

EXACT_TENDER_METHODS = (METHOD_CARD, METHOD_QRIS)


# =============================================================================
# PAYMENT STATUS (CONSTANTS)
# =============================================================================

PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PAID = "paid"

ZERO = Decimal("0")


@dataclass(frozen=True)
class SaleDraft:
    """Everything a payment path needs from the session, captured at click time."""
    shift: Shift | None
    branch_id: int
    lines: tuple[CartLine, ...]
    totals: SaleTotals
    customer: Customer | None
    idempotency_key: str


def _check_common(draft: SaleDraft) -> Shift:
    if draft.shift is None or not draft.shift.is_open:
        raise ShiftNotActive()
    if not draft.lines:
        raise EmptyCart()
    if draft.totals.grand_total < 0:
        raise InvalidAmount("Total due cannot be negative; reduce the voucher discount")
    return draft.shift


def _finalize(draft: SaleDraft, shift: Shift, method: str, **kwargs) -> FinalizedSale:
    customer = draft.customer
    kwargs.setdefault("customer_id", customer.id if customer else None)
    return FinalizedSale(
        shift_id=shift.id,
        branch_id=draft.branch_id,
        payment_method=method,
        items=tuple(_snapshot(line) for line in draft.lines),
        totals=draft.totals,
        idempotency_key=draft.idempotency_key,
        **kwargs,
    )


def _snapshot(line: CartLine) -> CartLine:
    return CartLine(
        product_id=line.product_id,
        product_name=line.product_name,
        original_price=line.original_price,
        cost_price=line.cost_price,
        quantity=line.quantity,
        discount=line.discount,
        available_quantity=line.available_quantity,
    )


# =============================================================================
# PAYMENT PATHS
# =============================================================================

def finalize_cash(draft: SaleDraft, amount_paid: Any, customer_name: str | None = None) -> FinalizedSale:
    """
    Cash tender.

    Raises:
        InvalidAmount: amount missing, negative or not a number
        InsufficientPayment: amount below the total due
    """
    shift = _check_common(draft)
    paid = parse_amount(amount_paid, "amount paid")
    total = draft.totals.grand_total
    if paid < total:
        raise InsufficientPayment()

    name = (customer_name or "").strip() or (draft.customer.name if draft.customer else None)
    return _finalize(
        draft, shift, METHOD_CASH,
        amount_paid=paid,
        change_given=paid - total,
        payment_status=PAYMENT_STATUS_PAID,
        customer_name=name,
    )


def finalize_transfer(
    draft: SaleDraft,
    bank_account_id: Any,
    reference_number: str | None,
    known_accounts: Iterable[BankAccount] | None = None,
) -> FinalizedSale:
    """
    Bank transfer, paid exactly.

    When the branch's accounts are known the selected one must be among them.
    """
    shift = _check_common(draft)
    try:
        account_id = parse_id(bank_account_id, "bank account")
    except InvalidAmount:
        raise IncompleteBankDetails()
    reference = (reference_number or "").strip()
    if account_id is None or not reference:
        raise IncompleteBankDetails()

    accounts = list(known_accounts or [])
    if accounts and account_id not in {a.id for a in accounts}:
        raise IncompleteBankDetails("Selected bank account is not available for this branch")

    return _finalize(
        draft, shift, METHOD_TRANSFER,
        amount_paid=draft.totals.grand_total,
        change_given=ZERO,
        payment_status=PAYMENT_STATUS_PAID,
        customer_name=draft.customer.name if draft.customer else None,
        bank_account_id=account_id,
        notes=f"Ref: {reference}",
    )


def finalize_exact(draft: SaleDraft, method: str, reference_number: str | None = None) -> FinalizedSale:
    """Card or QRIS: the terminal confirms the exact total, no change."""
    if method not in EXACT_TENDER_METHODS:
        raise InvalidAmount(f"payment method must be one of {list(EXACT_TENDER_METHODS)}")
    shift = _check_common(draft)
    reference = (reference_number or "").strip()
    return _finalize(
        draft, shift, method,
        amount_paid=draft.totals.grand_total,
        change_given=ZERO,
        payment_status=PAYMENT_STATUS_PAID,
        customer_name=draft.customer.name if draft.customer else None,
        notes=f"Ref: {reference}" if reference else "",
    )


def finalize_credit(draft: SaleDraft, due_date: Any = None, *, require_due_date: bool = False) -> FinalizedSale:
    """
    Credit sale: nothing is paid now and the whole total is outstanding.

    Raises:
        IncompleteCreditDetails: walk-in customer, missing or unparseable due date
    """
    shift = _check_common(draft)
    if draft.customer is None:
        raise IncompleteCreditDetails()

    parsed_due = _parse_due_date(due_date)
    if require_due_date and parsed_due is None:
        raise IncompleteCreditDetails("Select a due date for the credit sale")

    return _finalize(
        draft, shift, METHOD_CREDIT,
        amount_paid=ZERO,
        change_given=ZERO,
        payment_status=PAYMENT_STATUS_UNPAID,
        is_credit_sale=True,
        credit_due_date=parsed_due,
        outstanding_amount=draft.totals.grand_total,
        customer_name=draft.customer.name,
    )


def _parse_due_date(value: Any) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise IncompleteCreditDetails("Due date must be a date (YYYY-MM-DD)")
