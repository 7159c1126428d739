"""
repositories/fields.py
----------------------
Typed coercers used by the patch allow-lists.

Each factory returns a callable that validates one incoming value and
returns the value to store. Coercers raise ValueError (or TypeError); the
repository turns that into an InvalidArgument outcome naming the field.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

Coercer = Callable[[Any], Any]


def text(max_length: Optional[int] = None, required: bool = True, strip: bool = True) -> Coercer:
    def coerce(value: Any) -> Optional[str]:
        if value is None:
            if required:
                raise ValueError("value is required")
            return None
        if not isinstance(value, str):
            raise TypeError("expected a string")
        if strip:
            value = value.strip()
        if required and not value:
            raise ValueError("value must not be empty")
        if max_length is not None and len(value) > max_length:
            raise ValueError(f"longer than {max_length} characters")
        return value
    return coerce


def lowered_text(max_length: Optional[int] = None) -> Coercer:
    inner = text(max_length=max_length)
    return lambda value: inner(value).lower()


def blank_text(max_length: Optional[int] = None) -> Coercer:
    """Optional text stored as an empty string rather than NULL."""
    inner = text(max_length=max_length, required=False)
    return lambda value: inner(value) or ""


def integer(minimum: Optional[int] = None) -> Coercer:
    def coerce(value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise TypeError("expected an integer")
        number = int(value)
        if minimum is not None and number < minimum:
            raise ValueError(f"must be >= {minimum}")
        return number
    return coerce


def number(minimum: Optional[float] = None) -> Coercer:
    def coerce(value: Any) -> Optional[float]:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise TypeError("expected a number")
        result = float(value)
        if minimum is not None and result < minimum:
            raise ValueError(f"must be >= {minimum}")
        return result
    return coerce


def choice(enum_cls: Type[Enum]) -> Coercer:
    def coerce(value: Any) -> str:
        try:
            return enum_cls(value).value
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise ValueError(f"must be one of: {allowed}") from None
    return coerce


def string_list() -> Coercer:
    def coerce(value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise TypeError("expected a list")
        if not all(isinstance(item, str) for item in value):
            raise TypeError("expected a list of strings")
        return list(value)
    return coerce


def document_list() -> Coercer:
    def coerce(value: Any) -> List[Dict[str, Any]]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise TypeError("expected a list")
        if not all(isinstance(item, dict) for item in value):
            raise TypeError("expected a list of objects")
        return [dict(item) for item in value]
    return coerce


def coordinates() -> Coercer:
    def coerce(value: Any) -> Optional[Dict[str, float]]:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise TypeError("expected an object with lat and lng")
        lat, lng = float(value["lat"]), float(value["lng"])
        if not -90 <= lat <= 90 or not -180 <= lng <= 180:
            raise ValueError("lat/lng out of range")
        return {"lat": lat, "lng": lng}
    return coerce
