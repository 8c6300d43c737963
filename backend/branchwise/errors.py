# Overview: Error taxonomy for the sale session; every error is recoverable by user retry.

"""
POS error kinds.

Validation errors are raised before any provider call and never mutate
session state. ProviderError wraps any failure of the back office and
carries its message for display.
"""


class PosError(Exception):
    """Base exception for all terminal errors."""

    status_code = 400
    code = "pos_error"
    default_message = "Operation failed"

    def __init__(self, message: str | None = None, payload: dict | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.payload = payload or {}

    def to_dict(self) -> dict:
        rv = dict(self.payload)
        rv["error"] = self.message
        rv["code"] = self.code
        return rv


# =============================================================================
# SHIFT STATE
# =============================================================================

class ShiftNotActive(PosError):
    status_code = 409
    code = "shift_not_active"
    default_message = "No active shift. Start a shift first."


class ShiftAlreadyOpen(PosError):
    status_code = 409
    code = "shift_already_open"
    default_message = "A shift is already open for this cashier and branch"


class EndShiftNotPrepared(PosError):
    status_code = 409
    code = "end_shift_not_prepared"
    default_message = "Prepare the end-of-shift breakdown before closing the shift"


class ShiftOperationInProgress(PosError):
    status_code = 409
    code = "shift_operation_in_progress"
    default_message = "A shift operation is already being processed"


# =============================================================================
# CART / STOCK
# =============================================================================

class OutOfStock(PosError):
    status_code = 409
    code = "out_of_stock"

    def __init__(self, product_name: str):
        super().__init__(f"{product_name} is out of stock", {"product_name": product_name})


class InsufficientStock(PosError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, product_name: str, available: int):
        super().__init__(
            f"Maximum stock for {product_name} is {available}",
            {"product_name": product_name, "available": available},
        )
        self.available = available


class LineNotFound(PosError):
    status_code = 404
    code = "line_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} is not in the cart", {"product_id": product_id})


class ProductNotFound(PosError):
    status_code = 404
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", {"product_id": product_id})


class CustomerNotFound(PosError):
    status_code = 404
    code = "customer_not_found"

    def __init__(self, customer_id: int):
        super().__init__(f"Customer {customer_id} not found", {"customer_id": customer_id})


class EmptyCart(PosError):
    code = "empty_cart"
    default_message = "Cart is empty"


# =============================================================================
# AMOUNTS / PAYMENT
# =============================================================================

class InvalidAmount(PosError):
    code = "invalid_amount"
    default_message = "Invalid amount"


class InsufficientPayment(PosError):
    code = "insufficient_payment"
    default_message = "Amount paid is less than total"


class IncompleteBankDetails(PosError):
    code = "incomplete_bank_details"
    default_message = "Select a bank account and enter the reference number"


class IncompleteCreditDetails(PosError):
    code = "incomplete_credit_details"
    default_message = "Select a customer for the credit sale"


class SaleInProgress(PosError):
    status_code = 409
    code = "sale_in_progress"
    default_message = "A payment is already being processed"


class NoTransaction(PosError):
    status_code = 404
    code = "no_transaction"
    default_message = "No transaction to show"


# =============================================================================
# PROVIDER
# =============================================================================

class ProviderError(PosError):
    """Back office failure; the provider's message is surfaced as-is."""

    status_code = 502
    code = "provider_error"
    default_message = "Server error. Please try again."

    def __init__(self, message: str | None = None, *, provider_status: int | None = None):
        super().__init__(message, {"provider_status": provider_status} if provider_status else None)
        self.provider_status = provider_status
