"""Coercion of raw input values to declared field types."""

from form_sync.coercion.coercer import (
    BUILTIN_TYPES,
    Coercer,
    CoercionError,
    default_coercer,
)

__all__ = [
    "BUILTIN_TYPES",
    "Coercer",
    "CoercionError",
    "default_coercer",
]
