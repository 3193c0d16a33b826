"""Validation engine backed by a JSON Schema document."""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import jsonschema
from pydantic_core import to_jsonable_python

from form_sync.schema.models import FormSchema
from form_sync.validation.engine import ValidationResult


def _as_json(value: Any) -> Any:
    """Coerced values as JSON data: dates become ISO strings, decimals numbers."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Mapping):
        return {str(key): _as_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_as_json(item) for item in value]
    return to_jsonable_python(value)


class JSONSchemaEngine:
    """Validates form values against a JSON Schema document.

    Values are converted to their JSON form first, so a coerced ``date``
    validates against ``{"type": "string", "format": "date"}``. Error
    paths become dotted field keys. ``required`` failures are reported on
    the missing property itself; errors at the document root are reported
    under ``base``.
    """

    def __init__(self, document: dict[str, Any]) -> None:
        validator_cls = jsonschema.validators.validator_for(document)
        validator_cls.check_schema(document)
        self.document = document
        self._validator = validator_cls(document, format_checker=validator_cls.FORMAT_CHECKER)

    def validate(
        self,
        values: Mapping[str, Any],
        schema: FormSchema,
    ) -> ValidationResult:
        errors: dict[str, list[str]] = {}

        for error in self._validator.iter_errors(_as_json(values)):
            path = [str(part) for part in error.absolute_path]

            if error.validator == "required" and isinstance(error.instance, dict):
                for name in error.validator_value:
                    if name not in error.instance:
                        key = ".".join([*path, name])
                        errors.setdefault(key, []).append("can't be blank")
                continue

            key = ".".join(path) or "base"
            bucket = errors.setdefault(key, [])
            if error.message not in bucket:
                bucket.append(error.message)

        return ValidationResult(valid=not errors, errors=errors)
