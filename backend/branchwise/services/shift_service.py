"""
Shift Lifecycle Manager

WHY: Every sale is recorded against the cashier's open shift, and closing
a shift reconciles the drawer: expected cash (float + cash sales) against
what the cashier actually counted.

STATES:
- closed: no active shift; only start is allowed
- open: sales allowed; prepare_end then end closes it

The back office owns the uniqueness of the open shift per (user, branch);
the terminal queries it at session load and reflects it.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable

from ..api import SalesProvider, ShiftProvider
from ..errors import EndShiftNotPrepared, ShiftAlreadyOpen, ShiftNotActive, ShiftOperationInProgress
from ..models import Sale, Shift, ShiftBreakdown
from ..validation import parse_amount
from .concurrency import ProcessingGuard
from .payment_service import METHOD_CASH, PAYMENT_METHODS


logger = logging.getLogger(__name__)

STATE_OPEN = "open"
STATE_CLOSED = "closed"

SALE_STATUS_COMPLETED = "completed"
OTHER_METHODS_BUCKET = "other"

ZERO = Decimal("0")


def aggregate_sales_by_method(sales: Iterable[Sale]) -> tuple[dict[str, Decimal], Decimal, int, tuple[str, ...]]:
    """
    Sum completed sales per payment method.

    Returns (totals_by_method, total_sales, completed_count, unrecognized).
    Methods outside PAYMENT_METHODS are summed into the "other" bucket so
    they still count toward total sales but never toward expected cash.
    """
    totals: dict[str, Decimal] = {method: ZERO for method in PAYMENT_METHODS}
    totals[OTHER_METHODS_BUCKET] = ZERO
    unrecognized: list[str] = []
    count = 0

    for sale in sales:
        if sale.status != SALE_STATUS_COMPLETED:
            continue
        count += 1
        method = sale.payment_method
        if method not in PAYMENT_METHODS:
            if method not in unrecognized:
                unrecognized.append(method)
            method = OTHER_METHODS_BUCKET
        totals[method] += sale.total_amount

    return totals, sum(totals.values(), ZERO), count, tuple(unrecognized)


class ShiftManager:
    """Two-state machine over the cashier's shift at one branch."""

    def __init__(self, branch_id: int, shifts: ShiftProvider, sales: SalesProvider):
        self.branch_id = branch_id
        self.shifts = shifts
        self.sales = sales
        self.active_shift: Shift | None = None
        self.breakdown: ShiftBreakdown | None = None
        self._guard = ProcessingGuard(ShiftOperationInProgress)

    @property
    def state(self) -> str:
        return STATE_OPEN if self.active_shift is not None else STATE_CLOSED

    @property
    def is_open(self) -> bool:
        return self.active_shift is not None

    @property
    def processing(self) -> bool:
        return self._guard.busy

    def require_open(self) -> Shift:
        if self.active_shift is None:
            raise ShiftNotActive()
        return self.active_shift

    def refresh(self) -> Shift | None:
        """Reflect the back office's active shift (used when a session is loaded)."""
        shift = self.shifts.get_active()
        if shift is not None and not shift.is_open:
            shift = None
        if shift is None or self.active_shift is None or shift.id != self.active_shift.id:
            self.breakdown = None
        self.active_shift = shift
        return shift

    def start(self, initial_cash: Any) -> Shift:
        """
        Open a shift with the given cash float.

        Raises:
            ShiftAlreadyOpen: a shift is already open
            InvalidAmount: float missing, negative or not a number
            ProviderError: back office rejected it; state stays closed
        """
        if self.active_shift is not None:
            raise ShiftAlreadyOpen()
        starting_balance = parse_amount(initial_cash, "initial cash")

        with self._guard.hold():
            if self.active_shift is not None:
                raise ShiftAlreadyOpen()
            shift = self.shifts.start(self.branch_id, starting_balance)
            self.active_shift = shift
            self.breakdown = None

        logger.info("Shift %s started at branch %s with float %s", shift.id, self.branch_id, starting_balance)
        return shift

    def transactions(self) -> list[Sale]:
        shift = self.require_open()
        return self.sales.list(self.branch_id, shift.id)

    def prepare_end(self) -> ShiftBreakdown:
        """
        Build the reconciliation table for the open shift. Read-only.

        Must run before end(); its expected cash is what end() submits
        as the ending balance.
        """
        shift = self.require_open()
        sales = self.sales.list(self.branch_id, shift.id)
        totals, total_sales, count, unrecognized = aggregate_sales_by_method(sales)
        if unrecognized:
            logger.warning(
                "Shift %s has sales with unrecognized payment methods %s; counted as '%s'",
                shift.id, list(unrecognized), OTHER_METHODS_BUCKET,
            )

        self.breakdown = ShiftBreakdown(
            shift_id=shift.id,
            starting_balance=shift.starting_balance,
            expected_cash=shift.starting_balance + totals[METHOD_CASH],
            totals_by_method=totals,
            total_sales=total_sales,
            sale_count=count,
            unrecognized_methods=unrecognized,
        )
        return self.breakdown

    def end(self, actual_cash: Any) -> Shift:
        """
        Close the open shift with the counted drawer cash.

        Raises:
            ShiftNotActive: no open shift
            EndShiftNotPrepared: prepare_end() has not produced a breakdown
            InvalidAmount: counted cash missing, negative or not a number
            ProviderError: back office rejected it; shift and breakdown kept
        """
        shift = self.require_open()
        breakdown = self.breakdown
        if breakdown is None or breakdown.shift_id != shift.id:
            raise EndShiftNotPrepared()
        actual_balance = parse_amount(actual_cash, "actual cash")

        with self._guard.hold():
            closed = self.shifts.end(
                shift_id=shift.id,
                branch_id=self.branch_id,
                ending_balance=breakdown.expected_cash,
                actual_balance=actual_balance,
                per_method_totals=breakdown.totals_by_method,
                total_sales=breakdown.total_sales,
            )
            self.active_shift = None
            self.breakdown = None

        logger.info(
            "Shift %s closed: expected %s, counted %s",
            shift.id, breakdown.expected_cash, actual_balance,
        )
        return closed
