"""Form objects: read from models, validate input, sync back."""

from form_sync.form.deserializer import Deserializer, undeclared_keys
from form_sync.form.form import (
    FieldDescriptor,
    Form,
    FormCollection,
    build_form_class,
    placeholder_for,
)

__all__ = [
    "Deserializer",
    "FieldDescriptor",
    "Form",
    "FormCollection",
    "build_form_class",
    "placeholder_for",
    "undeclared_keys",
]
