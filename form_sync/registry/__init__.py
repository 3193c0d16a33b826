"""Registry for loading form specifications and building form classes."""

from form_sync.registry.forms import (
    FormNotFoundError,
    FormRegistry,
    FormSpecValidationError,
    build_form,
)
from form_sync.registry.models import FieldSpec, FormSpec

__all__ = [
    "FieldSpec",
    "FormNotFoundError",
    "FormRegistry",
    "FormSpec",
    "FormSpecValidationError",
    "build_form",
]
