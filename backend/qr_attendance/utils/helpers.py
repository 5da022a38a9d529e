"""Helper functions for the application."""
import math
from datetime import datetime, timezone
from typing import Any
from flask import jsonify, request


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def attendance_rate(present: int, total: int) -> int:
    """Present count over total as a whole percentage, rounded half up."""
    if not total:
        return 0
    return int(math.floor(present / total * 100 + 0.5))


def isoformat(value: datetime) -> str:
    if value is None:
        return None
    return value.isoformat() + 'Z'


def request_data() -> dict:
    """Body of a JSON or multipart/form request as a plain dict."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code


def error_response(message: str, status_code: int = 400, reason: str = None):
    """Return consistent error response."""
    body = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    if reason:
        body['reason'] = reason
    return jsonify(body), status_code
