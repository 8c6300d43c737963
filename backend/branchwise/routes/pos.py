# Overview: Flask API routes for the cashier's sale session; parses input and returns JSON responses.

# backend/branchwise/routes/pos.py
"""Sale session API routes (catalog, cart, adjustments, payment, receipt)"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_terminal
from ..errors import PosError
from ..validation import parse_id, money_json


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _state():
    return g.sale_session.snapshot()


def _payment_response(sale_id, sale):
    return jsonify({
        "transaction_id": sale_id,
        "payment_method": sale.payment_method,
        "total_amount": money_json(sale.totals.grand_total),
        "amount_paid": money_json(sale.amount_paid),
        "change_given": money_json(sale.change_given),
        "payment_status": sale.payment_status,
        "outstanding_amount": money_json(sale.outstanding_amount),
        "session": _state(),
    }), 201


# =============================================================================
# SESSION / LOOKUPS
# =============================================================================

@pos_bp.get("/session")
@require_terminal
def get_session_route():
    """Current cart, totals, shift state and payment selection."""
    try:
        return jsonify({"session": _state()}), 200
    except Exception:
        current_app.logger.exception("Failed to read sale session")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.get("/products")
@require_terminal
def search_products_route():
    """
    Search the branch catalog.

    Query params:
    - search: name or SKU fragment (optional)
    - page: 1-based page number (default 1)
    - page_size: one of 12, 24, 36, 48 (default 12)
    """
    try:
        result = g.sale_session.search_products(
            request.args.get("search"),
            request.args.get("page", 1),
            request.args.get("page_size", 12),
        )
        return jsonify(result.to_dict()), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to search products")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.get("/customers")
@require_terminal
def search_customers_route():
    try:
        customers = g.sale_session.search_customers(request.args.get("search"))
        return jsonify({"customers": [c.to_dict() for c in customers]}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to search customers")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.put("/customer")
@require_terminal
def select_customer_route():
    """Select a registered customer for the sale; null goes back to walk-in."""
    try:
        data = request.get_json(silent=True) or {}
        customer = g.sale_session.select_customer(data.get("customer_id"))
        return jsonify({"customer": customer.to_dict() if customer else None}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to select customer")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.get("/bank-accounts")
@require_terminal
def list_bank_accounts_route():
    try:
        refresh = request.args.get("refresh", "false").lower() == "true"
        accounts = g.sale_session.bank_accounts(refresh=refresh)
        return jsonify({"bank_accounts": [a.to_dict() for a in accounts]}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list bank accounts")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CART
# =============================================================================

@pos_bp.post("/cart/items")
@require_terminal
def add_cart_item_route():
    """
    Add one unit of a product to the cart.

    Requires an open shift. A second add of the same product increments
    its line, up to the available stock.
    """
    try:
        data = request.get_json(silent=True) or {}
        product_id = parse_id(data.get("product_id"), "product_id")

        if not product_id:
            return jsonify({"error": "product_id required"}), 400

        line = g.sale_session.add_product_by_id(product_id)
        return jsonify({"line": line.to_dict(), "session": _state()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.patch("/cart/items/<int:product_id>")
@require_terminal
def update_cart_item_route(product_id: int):
    """
    Set a line's quantity.

    0 or less removes the line. A quantity above stock is clamped and the
    response carries the stock warning instead of failing.
    """
    try:
        data = request.get_json(silent=True) or {}
        if "quantity" not in data:
            return jsonify({"error": "quantity required"}), 400

        update = g.sale_session.set_quantity(product_id, data["quantity"])
        return jsonify({"update": update.to_dict(), "session": _state()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update cart item")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.delete("/cart/items/<int:product_id>")
@require_terminal
def remove_cart_item_route(product_id: int):
    try:
        g.sale_session.remove_line(product_id)
        return jsonify({"session": _state()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to remove cart item")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.put("/cart/items/<int:product_id>/discount")
@require_terminal
def apply_discount_route(product_id: int):
    """
    Apply an item discount.

    Body: {"type": "nominal" | "percentage", "value": number}
    """
    try:
        data = request.get_json(silent=True) or {}
        line = g.sale_session.apply_line_discount(product_id, data.get("type"), data.get("value"))
        return jsonify({"line": line.to_dict(), "session": _state()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to apply item discount")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.delete("/cart/items/<int:product_id>/discount")
@require_terminal
def clear_discount_route(product_id: int):
    try:
        line = g.sale_session.clear_line_discount(product_id)
        return jsonify({"line": line.to_dict(), "session": _state()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to clear item discount")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.delete("/cart")
@require_terminal
def clear_cart_route():
    try:
        g.sale_session.clear_cart()
        return jsonify({"session": _state()}), 200
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SALE-LEVEL INPUTS
# =============================================================================

@pos_bp.put("/adjustments")
@require_terminal
def set_adjustments_route():
    """
    Set shipping cost and voucher discount for the sale.

    Blank or missing values count as 0.
    """
    try:
        data = request.get_json(silent=True) or {}
        totals = g.sale_session.set_adjustments(data.get("shipping_cost"), data.get("voucher_discount"))
        return jsonify({"totals": totals.to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to set sale adjustments")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.put("/payment-method")
@require_terminal
def set_payment_method_route():
    try:
        data = request.get_json(silent=True) or {}
        method = g.sale_session.set_payment_method(data.get("payment_method"))
        return jsonify({"payment_method": method}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to set payment method")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PAYMENT
# =============================================================================

@pos_bp.post("/payments/cash")
@require_terminal
def pay_cash_route():
    """
    Finalize the sale with cash.

    Body: {"amount_paid": number, "customer_name": optional receipt name}
    Returns 201 with the transaction id and change due.
    """
    try:
        data = request.get_json(silent=True) or {}
        sale_id, sale = g.sale_session.pay_cash(data.get("amount_paid"), data.get("customer_name"))
        return _payment_response(sale_id, sale)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to finalize cash sale")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.post("/payments/transfer")
@require_terminal
def pay_transfer_route():
    """
    Finalize the sale by bank transfer.

    Body: {"bank_account_id": int, "reference_number": str}
    """
    try:
        data = request.get_json(silent=True) or {}
        sale_id, sale = g.sale_session.pay_transfer(data.get("bank_account_id"), data.get("reference_number"))
        return _payment_response(sale_id, sale)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to finalize transfer sale")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.post("/payments/credit")
@require_terminal
def pay_credit_route():
    """
    Finalize the sale on credit for the selected customer.

    Body: {"due_date": "YYYY-MM-DD"} (optional unless the terminal requires it)
    """
    try:
        data = request.get_json(silent=True) or {}
        sale_id, sale = g.sale_session.pay_credit(data.get("due_date"))
        return _payment_response(sale_id, sale)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to finalize credit sale")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.post("/payments/<any(card, qris):method>")
@require_terminal
def pay_exact_route(method: str):
    """Card or QRIS: the terminal collects exactly the total due."""
    try:
        data = request.get_json(silent=True) or {}
        sale_id, sale = g.sale_session.pay_exact(method, data.get("reference_number"))
        return _payment_response(sale_id, sale)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to finalize %s sale", method)
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.get("/receipt")
@require_terminal
def receipt_route():
    """Receipt data for the last transaction, or ?sale_id= for a specific one."""
    try:
        sale_id = parse_id(request.args.get("sale_id"), "sale_id")
        sale = g.sale_session.receipt(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load receipt")
        return jsonify({"error": "Internal server error"}), 500
