from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import InvalidAmount


ZERO = Decimal("0")

# Guard against absurd inputs (e.g. "1e30") reaching the back office
MAX_AMOUNT = Decimal("999999999999")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Coerce a provider value (JSON number, numeric string, None) to Decimal.

    Laravel serializes decimal columns as strings ("100000.00"), so the
    string form is always used as the source.
    """
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return default


def parse_amount(value: Any, field: str, *, blank_as_zero: bool = False) -> Decimal:
    """
    Parse a cashier-entered amount.

    Rejects missing, non-numeric, non-finite and negative values with
    InvalidAmount. Booleans are rejected even though they are ints.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if blank_as_zero:
            return ZERO
        raise InvalidAmount(f"{field} is required")

    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be a number")

    if isinstance(value, str):
        value = value.strip()

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmount(f"{field} must be a number")

    if not amount.is_finite():
        raise InvalidAmount(f"{field} must be a number")
    if amount < 0:
        raise InvalidAmount(f"{field} cannot be negative")
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"{field} is too large")

    return amount


def parse_quantity(value: Any) -> int:
    """Quantities are whole numbers; zero and negatives are allowed (they remove the line)."""
    if isinstance(value, bool):
        raise InvalidAmount("quantity must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise InvalidAmount("quantity must be an integer")


def parse_id(value: Any, field: str) -> int | None:
    """Optional positive integer id; None / "" -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be an integer")
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise InvalidAmount(f"{field} must be an integer")
    if parsed <= 0:
        raise InvalidAmount(f"{field} must be positive")
    return parsed


def money_json(amount: Decimal | None):
    """Render a Decimal as a JSON number: int when integral, float otherwise."""
    if amount is None:
        return None
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)
