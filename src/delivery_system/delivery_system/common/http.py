from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .datetime_utils import parse_optional_date

logger = logging.getLogger(__name__)


def json_view(view):
    """Translate domain errors raised by a view into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except AuthorizationError as e:
            return jsonify({"error": str(e)}), 403
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404

    return wrapper


def current_user_id() -> Optional[int]:
    # The session is populated by the login layer in front of this API.
    user_id = session.get("user_id")
    return int(user_id) if user_id is not None else None


def current_role() -> Role:
    try:
        return Role(session.get("role") or Role.STAFF.value)
    except ValueError:
        logger.warning("Unknown role in session: %r", session.get("role"))
        return Role.STAFF


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def arg_date(name: str, default=None):
    return parse_optional_date(request.args.get(name), name) or default


def body_date(data: dict, name: str, default=None):
    value: Any = data.get(name)
    return parse_optional_date(str(value) if value is not None else None, name) or default
