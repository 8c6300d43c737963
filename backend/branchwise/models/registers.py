from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from ..time_utils import parse_iso_datetime, to_utc_z
from ..validation import to_decimal, money_json


@dataclass(frozen=True)
class Shift:
    """
    Cashier shift at one branch, as recorded by the back office.

    LIFECYCLE:
    - open: sales may be recorded against it
    - closed: reconciliation snapshot frozen (ending/actual balance, difference)

    The back office guarantees at most one open shift per (user, branch).
    """
    id: int
    status: str
    starting_balance: Decimal
    branch_id: int | None = None
    user_id: int | None = None
    user_name: str = ""
    total_sales: Decimal = Decimal("0")
    total_cash_payments: Decimal = Decimal("0")
    total_card_payments: Decimal = Decimal("0")
    total_bank_payments: Decimal = Decimal("0")
    total_qris_payments: Decimal = Decimal("0")
    total_credit_payments: Decimal = Decimal("0")
    ending_balance: Decimal | None = None
    actual_balance: Decimal | None = None
    cash_difference: Decimal | None = None
    start_shift: datetime | None = None
    end_shift: datetime | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Shift":
        def optional(key):
            return to_decimal(data[key]) if data.get(key) is not None else None

        branch_id = data.get("branch_id")
        user_id = data.get("user_id")
        return cls(
            id=int(data["id"]),
            status=data.get("status") or "open",
            starting_balance=to_decimal(data.get("starting_balance")),
            branch_id=int(branch_id) if branch_id not in (None, "") else None,
            user_id=int(user_id) if user_id not in (None, "") else None,
            user_name=data.get("user_name") or "",
            total_sales=to_decimal(data.get("total_sales")),
            total_cash_payments=to_decimal(data.get("total_cash_payments")),
            total_card_payments=to_decimal(data.get("total_card_payments")),
            total_bank_payments=to_decimal(data.get("total_bank_payments")),
            total_qris_payments=to_decimal(data.get("total_qris_payments")),
            total_credit_payments=to_decimal(data.get("total_credit_payments")),
            ending_balance=optional("ending_balance"),
            actual_balance=optional("actual_balance"),
            cash_difference=optional("cash_difference"),
            start_shift=parse_iso_datetime(data.get("start_shift")),
            end_shift=parse_iso_datetime(data.get("end_shift")),
        )

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "branch_id": self.branch_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "starting_balance": money_json(self.starting_balance),
            "total_sales": money_json(self.total_sales),
            "total_cash_payments": money_json(self.total_cash_payments),
            "total_card_payments": money_json(self.total_card_payments),
            "total_bank_payments": money_json(self.total_bank_payments),
            "total_qris_payments": money_json(self.total_qris_payments),
            "total_credit_payments": money_json(self.total_credit_payments),
            "ending_balance": money_json(self.ending_balance),
            "actual_balance": money_json(self.actual_balance),
            "cash_difference": money_json(self.cash_difference),
            "start_shift": to_utc_z(self.start_shift),
            "end_shift": to_utc_z(self.end_shift),
        }


@dataclass(frozen=True)
class ShiftBreakdown:
    """
    End-of-shift reconciliation table.

    expected_cash = starting_balance + completed cash sales. The cashier
    counts the drawer against this figure before closing the shift.
    """
    shift_id: int
    starting_balance: Decimal
    expected_cash: Decimal
    totals_by_method: dict[str, Decimal]
    total_sales: Decimal
    sale_count: int
    unrecognized_methods: tuple[str, ...] = field(default_factory=tuple)

    def total_for(self, method: str) -> Decimal:
        return self.totals_by_method.get(method, Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "shift_id": self.shift_id,
            "starting_balance": money_json(self.starting_balance),
            "expected_cash": money_json(self.expected_cash),
            "totals_by_method": {k: money_json(v) for k, v in self.totals_by_method.items()},
            "total_sales": money_json(self.total_sales),
            "sale_count": self.sale_count,
            "unrecognized_methods": list(self.unrecognized_methods),
        }
