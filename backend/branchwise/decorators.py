# Overview: Request decorators for terminal routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .errors import PosError
from .extensions import terminal


def _header_id(name: str, default):
    value = request.headers.get(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def require_terminal(f):
    """
    Resolve the cashier's sale session for this request.

    Sets the following Flask g attributes:
    - g.user_id: cashier id (X-User-Id header, else POS_USER_ID)
    - g.branch_id: branch id (X-Branch-Id header, else POS_BRANCH_ID)
    - g.sale_session: the SaleSession for that pair

    Returns 400 if either id is missing or not a positive integer, and
    the provider's error if the session cannot be loaded.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = _header_id("X-User-Id", current_app.config.get("POS_USER_ID"))
        branch_id = _header_id("X-Branch-Id", current_app.config.get("POS_BRANCH_ID"))

        if not user_id or not branch_id:
            return jsonify({"error": "Cashier and branch are required"}), 400

        try:
            session = terminal.session_for(user_id, branch_id)
        except PosError as e:
            return jsonify(e.to_dict()), e.status_code

        g.user_id = user_id
        g.branch_id = branch_id
        g.sale_session = session

        return f(*args, **kwargs)

    return decorated_function
