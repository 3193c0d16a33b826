"""Pluggable validation engines and error collection."""

from form_sync.validation.engine import (
    RuleEngine,
    ValidationEngine,
    ValidationResult,
    is_blank,
)
from form_sync.validation.errors import Errors
from form_sync.validation.jsonschema_engine import JSONSchemaEngine

__all__ = [
    "Errors",
    "JSONSchemaEngine",
    "RuleEngine",
    "ValidationEngine",
    "ValidationResult",
    "is_blank",
]
