from __future__ import annotations

from decimal import Decimal

from ..models import Shift
from ..validation import money_json
from .client import LaravelClient


class ShiftProvider:
    """
    Shift records for the authenticated cashier.

    The back office is the source of truth for "one open shift per
    (user, branch)"; a second start is rejected there as well.
    """

    def __init__(self, client: LaravelClient):
        self.client = client

    def get_active(self) -> Shift | None:
        # 404 (or an empty body) means no active shift
        body = self.client.get_or_none("/api/shifts/active")
        if not body:
            return None
        return Shift.from_api(body)

    def start(self, branch_id: int, starting_balance: Decimal) -> Shift:
        body = self.client.post("/api/shifts/start", json={
            "branch_id": branch_id,
            "starting_balance": money_json(starting_balance),
        })
        return Shift.from_api(body)

    def end(
        self,
        shift_id: int,
        branch_id: int,
        ending_balance: Decimal,
        actual_balance: Decimal,
        per_method_totals: dict[str, Decimal],
        total_sales: Decimal,
    ) -> Shift:
        zero = Decimal("0")
        body = self.client.post("/api/shifts/end", json={
            "shift_id": shift_id,
            "branch_id": branch_id,
            "ending_balance": money_json(ending_balance),
            "actual_balance": money_json(actual_balance),
            "total_cash_payments": money_json(per_method_totals.get("cash", zero)),
            "total_card_payments": money_json(per_method_totals.get("card", zero)),
            "total_bank_payments": money_json(per_method_totals.get("transfer", zero)),
            "total_qris_payments": money_json(per_method_totals.get("qris", zero)),
            "total_credit_payments": money_json(per_method_totals.get("credit", zero)),
            "total_sales": money_json(total_sales),
        })
        return Shift.from_api(body)
