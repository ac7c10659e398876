from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Type, TypeVar
from urllib.parse import urlparse

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def _require_str(value, field_name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError.for_field(field_name, f"{field_name} must be a string")
    return value


def require_non_empty(value: Optional[str], field_name: str) -> str:
    value = _require_str(value, field_name)
    if not value or not value.strip():
        raise ValidationError.for_field(field_name, f"{field_name} is required")
    return value.strip()


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    value = _require_str(value, field_name)
    if value is not None and len(value) > max_len:
        raise ValidationError.for_field(field_name, f"{field_name} must be at most {max_len} characters")
    return value


def optional_text(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    v = (_require_str(value, field_name) or "").strip()
    if not v:
        return None
    return require_max_length(v, field_name, max_len)


def require_enum(enum_cls: Type[E], value, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError.for_field(field_name, f"{field_name} must be one of: {allowed}")


def require_between(value: Optional[float], field_name: str, low: float, high: float) -> Optional[float]:
    if value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field_name, f"{field_name} must be numeric")
    if not low <= v <= high:
        raise ValidationError.for_field(field_name, f"{field_name} must be between {low} and {high}")
    return v


def require_urls(values: Optional[Iterable[str]], field_name: str) -> list[str]:
    out: list[str] = []
    for i, raw in enumerate(values or []):
        parsed = urlparse(str(raw or "").strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValidationError.for_field(f"{field_name}.{i}", f"{field_name}.{i} must be a valid URL")
        out.append(str(raw).strip())
    return out
