"""
FinSight Backend — Required-field checks
==========================================

Request bodies are parsed leniently (every field optional) so that a missing
field becomes a 400 with a readable message instead of FastAPI's 422.
A value counts as missing when it is absent, None, or a blank string.
"""

from typing import Any, Iterable, List, Mapping

from app.exceptions import ValidationError


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def missing_fields(data: Mapping[str, Any], required: Iterable[str]) -> List[str]:
    """Names in `required` whose value in `data` is missing."""
    return [name for name in required if is_missing(data.get(name))]


def require_fields(data: Mapping[str, Any], required: Iterable[str], message: str) -> None:
    """Raise ValidationError(message) listing every missing field, if any."""
    missing = missing_fields(data, required)
    if missing:
        raise ValidationError(message=message, fields=missing)
