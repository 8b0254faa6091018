"""JSON response helpers shared by the feature controllers."""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any

from flask import jsonify, request

from ..core.exceptions import AuthenticationError, AuthorizationError, BackendError, ValidationError

logger = logging.getLogger(__name__)


def serialize(value: Any) -> Any:
    """Turn dataclasses, enums, dates and sets into JSON-ready values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(serialize(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    return value


def json_ok(status: int = 200, **payload):
    body = {"success": True}
    body.update({k: serialize(v) for k, v in payload.items()})
    return jsonify(body), status


def json_fail(message: str, status: int = 400, **payload):
    body = {"success": False, "message": message}
    body.update({k: serialize(v) for k, v in payload.items()})
    return jsonify(body), status


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def uploaded_bytes(field: str = "file") -> bytes:
    """Read an uploaded file from a multipart form, or the raw request body."""
    upload = request.files.get(field)
    if upload is not None:
        return upload.read()
    data = request.get_data()
    if not data:
        raise ValidationError("Vui lòng chọn file để nhập")
    return data


def api_errors(action: str):
    """Map domain errors raised by a view to JSON responses.

    ``action`` completes the generic message: "Lỗi hệ thống khi <action>".
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except AuthenticationError as e:
                return json_fail(str(e), 401)
            except AuthorizationError as e:
                return json_fail(str(e), 403)
            except ValidationError as e:
                return json_fail(str(e), 400)
            except BackendError as e:
                return json_fail(f"{e}. Không thể {action}", 500)
            except Exception:
                logger.exception("unhandled error while %s", action)
                return json_fail(f"Lỗi hệ thống khi {action}", 500)

        return wrapper

    return decorator
