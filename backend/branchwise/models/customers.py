from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..validation import to_decimal, money_json


@dataclass(frozen=True)
class Customer:
    """
    Registered customer.

    A sale without a Customer is a walk-in sale. Credit sales always
    need one because the back office tracks the receivable against it.
    """
    id: int
    name: str
    phone: str | None = None
    email: str | None = None
    credit_limit: Decimal = Decimal("0")
    payment_terms_days: int = 0
    credit_status: str = "active"

    @classmethod
    def from_api(cls, data: dict) -> "Customer":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            phone=data.get("phone"),
            email=data.get("email"),
            credit_limit=to_decimal(data.get("credit_limit")),
            payment_terms_days=int(data.get("payment_terms_days") or 0),
            credit_status=data.get("credit_status") or "active",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "credit_limit": money_json(self.credit_limit),
            "payment_terms_days": self.payment_terms_days,
            "credit_status": self.credit_status,
        }
