from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from ..time_utils import parse_iso_datetime, to_utc_z
from ..validation import to_decimal, money_json


DISCOUNT_NOMINAL = "nominal"
DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_TYPES = (DISCOUNT_NOMINAL, DISCOUNT_PERCENTAGE)

ZERO = Decimal("0")


@dataclass(frozen=True)
class LineDiscount:
    """Per-unit discount on a cart line: absolute amount or percentage of the original price."""
    type: str = DISCOUNT_NOMINAL
    value: Decimal = ZERO

    def amount_for(self, original_price: Decimal) -> Decimal:
        if self.type == DISCOUNT_PERCENTAGE:
            amount = original_price * self.value / 100
        else:
            amount = self.value
        # A unit can never be discounted below zero
        return min(amount, original_price)


@dataclass
class CartLine:
    """
    One product in the cart.

    current_price and subtotal are derived from original_price, the
    discount and quantity on every access; they are never stored.
    """
    product_id: int
    product_name: str
    original_price: Decimal
    cost_price: Decimal
    quantity: int = 1
    discount: LineDiscount = field(default_factory=LineDiscount)
    available_quantity: int = 0

    @property
    def discount_amount(self) -> Decimal:
        return self.discount.amount_for(self.original_price)

    @property
    def current_price(self) -> Decimal:
        return max(self.original_price - self.discount_amount, ZERO)

    @property
    def subtotal(self) -> Decimal:
        return self.current_price * self.quantity

    @property
    def line_cost(self) -> Decimal:
        return self.cost_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "original_price": money_json(self.original_price),
            "current_price": money_json(self.current_price),
            "quantity": self.quantity,
            "discount_type": self.discount.type,
            "discount_value": money_json(self.discount.value),
            "discount_amount": money_json(self.discount_amount),
            "cost_price": money_json(self.cost_price),
            "subtotal": money_json(self.subtotal),
            "available_quantity": self.available_quantity,
        }

    def to_payload(self) -> dict:
        """Item shape expected by the back office's POS transaction endpoint."""
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": money_json(self.current_price),
            "original_price": money_json(self.original_price),
            "discount_amount": money_json(self.discount_amount),
            "item_discount_type": self.discount.type,
            "item_discount_value": money_json(self.discount.value),
            "cost_price": money_json(self.cost_price),
            "subtotal": money_json(self.subtotal),
            "discount": 0,
        }


@dataclass(frozen=True)
class SaleTotals:
    """Derived totals of a session; a snapshot, recomputed on every read."""
    item_count: int
    total_item_discount: Decimal
    subtotal_after_item_discounts: Decimal
    tax_rate: Decimal
    tax: Decimal
    shipping_cost: Decimal
    voucher_discount: Decimal
    total_discount_amount: Decimal
    grand_total: Decimal
    total_cost: Decimal

    def to_dict(self) -> dict:
        return {
            "item_count": self.item_count,
            "total_item_discount": money_json(self.total_item_discount),
            "subtotal_after_item_discounts": money_json(self.subtotal_after_item_discounts),
            "tax_rate": float(self.tax_rate),
            "tax": money_json(self.tax),
            "shipping_cost": money_json(self.shipping_cost),
            "voucher_discount": money_json(self.voucher_discount),
            "total_discount_amount": money_json(self.total_discount_amount),
            "grand_total": money_json(self.grand_total),
            "total_cost": money_json(self.total_cost),
        }


@dataclass(frozen=True)
class Sale:
    """A sale as recorded by the back office."""
    id: int
    status: str
    payment_method: str
    total_amount: Decimal
    transaction_number: str = ""
    payment_status: str | None = None
    amount_paid: Decimal = ZERO
    change_given: Decimal = ZERO
    customer_id: int | None = None
    customer_name: str | None = None
    shift_id: int | None = None
    created_at: datetime | None = None
    items: tuple[dict, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "Sale":
        customer_id = data.get("customer_id")
        shift_id = data.get("shift_id")
        return cls(
            id=int(data["id"]),
            status=data.get("status") or "",
            payment_method=data.get("payment_method") or "",
            total_amount=to_decimal(data.get("total_amount")),
            transaction_number=data.get("transaction_number") or "",
            payment_status=data.get("payment_status"),
            amount_paid=to_decimal(data.get("amount_paid")),
            change_given=to_decimal(data.get("change_given")),
            customer_id=int(customer_id) if customer_id not in (None, "") else None,
            customer_name=data.get("customer_name"),
            shift_id=int(shift_id) if shift_id not in (None, "") else None,
            created_at=parse_iso_datetime(data.get("created_at")),
            items=tuple(data.get("sale_details") or data.get("items") or ()),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "total_amount": money_json(self.total_amount),
            "amount_paid": money_json(self.amount_paid),
            "change_given": money_json(self.change_given),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "shift_id": self.shift_id,
            "created_at": to_utc_z(self.created_at),
            "items": list(self.items),
        }


@dataclass(frozen=True)
class FinalizedSale:
    """
    Immutable request sent to the back office once payment is confirmed.

    For credit sales amount_paid is 0 and the whole total is outstanding;
    the receivable itself is tracked by the back office.
    """
    shift_id: int
    branch_id: int
    payment_method: str
    items: tuple[CartLine, ...]
    totals: SaleTotals
    amount_paid: Decimal
    change_given: Decimal
    payment_status: str
    idempotency_key: str
    is_credit_sale: bool = False
    credit_due_date: date | None = None
    outstanding_amount: Decimal = ZERO
    customer_id: int | None = None
    customer_name: str | None = None
    bank_account_id: int | None = None
    notes: str = ""

    def to_payload(self) -> dict:
        payload = {
            "shift_id": self.shift_id,
            "branch_id": self.branch_id,
            "payment_method": self.payment_method,
            "amount_paid": money_json(self.amount_paid),
            "change_given": money_json(self.change_given),
            "payment_status": self.payment_status,
            "is_credit_sale": self.is_credit_sale,
            "outstanding_amount": money_json(self.outstanding_amount),
            "subtotal": money_json(self.totals.subtotal_after_item_discounts),
            "tax_amount": money_json(self.totals.tax),
            "shipping_cost": money_json(self.totals.shipping_cost),
            "voucher_discount_amount": money_json(self.totals.voucher_discount),
            "total_discount_amount": money_json(self.totals.total_discount_amount),
            "total_amount": money_json(self.totals.grand_total),
            "total_cogs": money_json(self.totals.total_cost),
            "notes": self.notes,
            "client_request_id": self.idempotency_key,
            "items": [line.to_payload() for line in self.items],
        }
        if self.credit_due_date is not None:
            payload["credit_due_date"] = self.credit_due_date.isoformat()
        if self.customer_id is not None:
            payload["customer_id"] = self.customer_id
        if self.customer_name:
            payload["customer_name"] = self.customer_name
        if self.bank_account_id is not None:
            payload["bank_account_id"] = self.bank_account_id
        return payload
