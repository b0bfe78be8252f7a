"""
Response envelope and serialization helpers shared by the v1 routers.

Successful responses have the shape ``{"success": true, "data": ..., "message"?, "pagination"?}``.
"""

import math
from datetime import date, datetime
from typing import Any, Iterable, Optional

from sqlalchemy import inspect


def serialize_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize(obj: Any, exclude: Iterable[str] = ("hashed_password",), **extra: Any) -> Optional[dict]:
    """Map an ORM row's column attributes to a JSON-friendly dict."""
    if obj is None:
        return None
    excluded = set(exclude)
    data = {
        attr.key: serialize_value(getattr(obj, attr.key))
        for attr in inspect(obj).mapper.column_attrs
        if attr.key not in excluded
    }
    data.update(extra)
    return data


def employee_summary(employee: Any) -> Optional[dict]:
    """The embedded employee shape used by attendance, payroll, leave and review rows."""
    if employee is None:
        return None
    return {
        "id": employee.id,
        "employee_id": employee.employee_code,
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "position": employee.position,
        "department": employee.department,
    }


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    pagination: Optional[dict] = None,
    **extra: Any,
) -> dict:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    body.update(extra)
    return body
