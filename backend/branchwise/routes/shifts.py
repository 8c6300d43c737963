# Overview: Flask API routes for the cashier's shift lifecycle.

# backend/branchwise/routes/shifts.py
"""
Shift API routes.

A shift is opened with a cash float, reconciled with prepare-end and
closed with the counted drawer cash. The back office holds the shift;
these routes drive the session's view of it.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_terminal
from ..errors import PosError


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/pos/shift")


@shifts_bp.get("")
@require_terminal
def get_shift_route():
    """
    Active shift for this cashier and branch.

    Query params:
    - refresh=true: re-read the active shift from the back office first
    """
    try:
        session = g.sale_session
        if request.args.get("refresh", "false").lower() == "true":
            session.load()
        shift = session.active_shift
        return jsonify({
            "state": session.shift.state,
            "shift": shift.to_dict() if shift else None,
        }), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to read shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.post("/start")
@require_terminal
def start_shift_route():
    """
    Open a shift.

    Body: {"initial_cash": number}
    Returns 409 if a shift is already open.
    """
    try:
        data = request.get_json(silent=True) or {}
        shift = g.sale_session.start_shift(data.get("initial_cash"))
        return jsonify({"shift": shift.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to start shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.post("/prepare-end")
@require_terminal
def prepare_end_route():
    """Per-method totals and expected cash for the open shift. Changes nothing upstream."""
    try:
        breakdown = g.sale_session.prepare_end_shift()
        return jsonify({"breakdown": breakdown.to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to prepare end of shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.post("/end")
@require_terminal
def end_shift_route():
    """
    Close the shift with the counted drawer cash.

    Body: {"actual_cash": number}
    Any cart in progress is discarded; the count is returned.
    """
    try:
        data = request.get_json(silent=True) or {}
        shift, discarded = g.sale_session.end_shift(data.get("actual_cash"))
        return jsonify({
            "shift": shift.to_dict(),
            "discarded_cart_lines": discarded,
        }), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to end shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/transactions")
@require_terminal
def shift_transactions_route():
    try:
        sales = g.sale_session.shift_transactions()
        return jsonify({"transactions": [s.to_dict() for s in sales]}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list shift transactions")
        return jsonify({"error": "Internal server error"}), 500
