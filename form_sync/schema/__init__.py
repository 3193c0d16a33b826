"""Field schema declarations for form classes."""

from form_sync.schema.declaration import Collection, Property
from form_sync.schema.models import (
    UNSET,
    FieldDefinition,
    FormDefinitionError,
    FormSchema,
)

__all__ = [
    "Collection",
    "FieldDefinition",
    "FormDefinitionError",
    "FormSchema",
    "Property",
    "UNSET",
]
