"""JSON plumbing shared by the feature controllers."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .datetime_utils import parse_iso_date

STATUS_BY_KIND = {
    "validation_error": 422,
    "unauthenticated": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
}


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def ok(data: Any = None, status: int = 200, message: Optional[str] = None):
    body: dict[str, Any] = {"success": True, "data": to_jsonable(data)}
    if message:
        body["message"] = message
    return jsonify(body), status


def error_response(err: DomainError):
    body = {"success": False, **err.to_dict()}
    return jsonify(body), STATUS_BY_KIND.get(err.kind, 400)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def current_actor(users: UserRepository) -> User:
    """Resolve the actor from an already-established session."""
    user_id = session.get("user_id")
    if user_id is None:
        raise AuthenticationError()
    actor = users.get_by_id(int(user_id))
    if not actor or not actor.is_active:
        raise AuthenticationError()
    return actor


def int_value(value: Any, field_name: str, *, required: bool = False) -> Optional[int]:
    if value is None or value == "":
        if required:
            raise ValidationError.for_field(field_name, f"{field_name} is required")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field_name, f"{field_name} must be an integer")


def date_value(value: Any, field_name: str, *, required: bool = False) -> Optional[date]:
    if value is None or value == "":
        if required:
            raise ValidationError.for_field(field_name, f"{field_name} is required")
        return None
    return parse_iso_date(str(value), field_name)
