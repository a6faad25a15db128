from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Login required", 401)
        return view(*args, **kwargs)

    return wrapper


def domain_errors(view):
    """Map domain exceptions onto HTTP status codes for JSON endpoints."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return json_error(str(e), 400)
        except AuthorizationError as e:
            return json_error(str(e), 403)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return json_error("Internal server error", 500)

    return wrapper


def form_data() -> dict:
    """Request fields from a JSON body or a form post."""

    if request.is_json:
        return dict(request.get_json(silent=True) or {})
    return request.form.to_dict()


def current_user_id() -> int:
    return int(session["user_id"])


def current_role():
    return session.get("role")
