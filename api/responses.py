"""
Success side of the response envelope:
{success, message, data, timestamp, statusCode}
Errors use the same shape, see api/errors.py.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, List

from flask import jsonify


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def envelope(success: bool, message: str, status: int, data: Any = None, error: str | None = None) -> dict:
    body = {
        "success": success,
        "message": message,
        "timestamp": _timestamp(),
        "statusCode": status,
    }
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    return body


def success(data: Any = None, message: str = "Success", status: int = 200):
    if status >= 400:
        raise ValueError("Success responses should have status codes < 400")
    return jsonify(envelope(True, message, status, data=data)), status


def created(data: Any, message: str = "Resource created successfully"):
    return success(data, message, 201)


def no_content():
    # 204 carries no body
    return "", 204


def paginated(items: List[Any], total: int, page: int, limit: int, message: str = "Success"):
    total_pages = math.ceil(total / limit) if limit else 0
    data = {
        "items": items,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }
    return success(data, message)
