"""form-sync: form objects between untrusted input and persistence models."""

__version__ = "0.1.0"

from form_sync.accessors import MissingAccessorError
from form_sync.coercion import CoercionError
from form_sync.form import Form, FormCollection, build_form_class
from form_sync.schema import (
    UNSET,
    Collection,
    FieldDefinition,
    FormDefinitionError,
    FormSchema,
    Property,
)
from form_sync.validation import (
    Errors,
    JSONSchemaEngine,
    RuleEngine,
    ValidationEngine,
    ValidationResult,
)

__all__ = [
    "__version__",
    "CoercionError",
    "Collection",
    "Errors",
    "FieldDefinition",
    "Form",
    "FormCollection",
    "FormDefinitionError",
    "FormSchema",
    "JSONSchemaEngine",
    "MissingAccessorError",
    "Property",
    "RuleEngine",
    "UNSET",
    "ValidationEngine",
    "ValidationResult",
    "build_form_class",
]
