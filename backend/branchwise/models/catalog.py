from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..validation import to_decimal, money_json


@dataclass(frozen=True)
class Product:
    """
    Catalog reference data as last fetched from the back office.

    Not owned by the session: a cart line snapshots what it needs
    (name, price, cost) at the moment the product is added.
    """
    id: int
    name: str
    price: Decimal
    cost_price: Decimal = Decimal("0")
    quantity: int = 0

    @classmethod
    def from_api(cls, data: dict) -> "Product":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            price=to_decimal(data.get("price")),
            cost_price=to_decimal(data.get("cost_price")),
            quantity=int(to_decimal(data.get("quantity"))),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": money_json(self.price),
            "cost_price": money_json(self.cost_price),
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class ProductPage:
    items: list[Product]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total // self.page_size)

    def to_dict(self) -> dict:
        return {
            "items": [p.to_dict() for p in self.items],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


@dataclass(frozen=True)
class Branch:
    """Branch configuration relevant to the till (tax, currency, printer)."""
    id: int
    name: str = ""
    tax_rate: Decimal = Decimal("0")  # percentage, e.g. 11 for 11%
    currency: str = "IDR"
    printer_port: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Branch":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            tax_rate=to_decimal(data.get("tax_rate")),
            currency=data.get("currency") or "IDR",
            printer_port=data.get("printer_port") or None,
        )

    @property
    def tax_fraction(self) -> Decimal:
        return Decimal(self.tax_rate) / 100

    @property
    def currency_symbol(self) -> str:
        if self.currency == "IDR":
            return "Rp"
        return self.currency or "$"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tax_rate": money_json(Decimal(self.tax_rate)),
            "currency": self.currency,
            "currency_symbol": self.currency_symbol,
            "printer_port": self.printer_port,
        }


@dataclass(frozen=True)
class BankAccount:
    id: int
    bank_name: str
    account_number: str = ""
    account_holder_name: str = ""
    is_active: bool = True
    is_default: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "BankAccount":
        return cls(
            id=int(data["id"]),
            bank_name=data.get("bank_name") or "",
            account_number=str(data.get("account_number") or ""),
            account_holder_name=str(data.get("account_holder_name") or ""),
            is_active=bool(data.get("is_active", True)),
            is_default=bool(data.get("is_default", False)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "account_holder_name": self.account_holder_name,
            "is_default": self.is_default,
        }
