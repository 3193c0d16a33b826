"""Coercer for converting raw input values to declared field types.

The coercer is strict: values that do not convert cleanly raise
CoercionError, which the form records as a field error. Blank strings
become None for every non-string type.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from form_sync.schema.models import FormDefinitionError

logger = logging.getLogger(__name__)

TRUE_STRINGS = frozenset({"1", "true", "t", "yes", "y", "on"})
FALSE_STRINGS = frozenset({"0", "false", "f", "no", "n", "off"})


class CoercionError(Exception):
    """Raised when a raw value cannot be converted to its declared type.

    The message is user-facing; it becomes the field error.
    """

    pass


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and value.strip() == ""


def to_str(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        return str(raw)
    raise CoercionError("must be a string")


def to_int(raw: Any) -> int | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, bool):
        raise CoercionError("is not a valid integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, (float, Decimal)):
        try:
            whole = int(raw)
        except (ValueError, OverflowError):
            raise CoercionError("is not a valid integer") from None
        if raw == whole:
            return whole
        raise CoercionError("is not a valid integer")
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            numeric = float(text)
        except ValueError:
            raise CoercionError("is not a valid integer") from None
        if numeric.is_integer():
            return int(numeric)
    raise CoercionError("is not a valid integer")


def to_float(raw: Any) -> float | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, bool):
        raise CoercionError("is not a valid number")
    if isinstance(raw, (int, float, Decimal)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            pass
    raise CoercionError("is not a valid number")


def to_decimal(raw: Any) -> Decimal | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, bool):
        raise CoercionError("is not a valid decimal")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float, str)):
        try:
            return Decimal(str(raw).strip())
        except InvalidOperation:
            pass
    raise CoercionError("is not a valid decimal")


def to_bool(raw: Any) -> bool | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in TRUE_STRINGS:
            return True
        if normalized in FALSE_STRINGS:
            return False
    raise CoercionError("is not a valid boolean")


def to_date(raw: Any) -> date | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw.strip())
        except ValueError:
            pass
    raise CoercionError("is not a valid date")


def to_datetime(raw: Any) -> datetime | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise CoercionError("is not a valid datetime")


def passthrough(raw: Any) -> Any:
    return raw


BUILTIN_TYPES: dict[str, Callable[[Any], Any]] = {
    "any": passthrough,
    "str": to_str,
    "string": to_str,
    "int": to_int,
    "integer": to_int,
    "float": to_float,
    "decimal": to_decimal,
    "bool": to_bool,
    "boolean": to_bool,
    "date": to_date,
    "datetime": to_datetime,
}

PYTHON_TYPES: dict[type, Callable[[Any], Any]] = {
    str: to_str,
    int: to_int,
    float: to_float,
    Decimal: to_decimal,
    bool: to_bool,
    date: to_date,
    datetime: to_datetime,
}


class Coercer:
    """Resolves coercion rules and applies them to raw values.

    A rule is one of:
    - None (no coercion)
    - a registered type name ("int", "date", ...)
    - a supported Python type (int, Decimal, datetime, ...)
    - any callable taking the raw value
    """

    def __init__(self) -> None:
        self._types = dict(BUILTIN_TYPES)

    def register(self, name: str, func: Callable[[Any], Any]) -> None:
        """Register a named coercion rule."""
        self._types[name] = func

    def resolve(self, rule: Any) -> Callable[[Any], Any]:
        """Turn a declared type into a coercion function.

        Raises:
            FormDefinitionError: If the rule names an unknown type.
        """
        if rule is None:
            return passthrough
        if isinstance(rule, str):
            if rule not in self._types:
                raise FormDefinitionError(f"Unknown coercion type: {rule!r}")
            return self._types[rule]
        if isinstance(rule, type) and rule in PYTHON_TYPES:
            return PYTHON_TYPES[rule]
        if callable(rule):
            return rule
        raise FormDefinitionError(f"Unsupported coercion rule: {rule!r}")

    def coerce(self, raw: Any, rule: Any) -> Any:
        """Coerce a raw value.

        Raises:
            CoercionError: If the value cannot be converted.
        """
        if raw is None:
            return None

        func = self.resolve(rule)
        try:
            return func(raw)
        except CoercionError:
            raise
        except (ValueError, TypeError) as e:
            logger.debug("Custom coercion %r failed: %s", rule, e)
            raise CoercionError(str(e) or "is invalid") from e


default_coercer = Coercer()
