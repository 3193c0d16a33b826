"""Validation engines.

An engine receives the current values of one form (nested forms as
plain dicts) together with the form's schema, and reports field errors.
Engines never touch models.

RuleEngine implements the rules declared with ``validates={...}``:

    presence, absence, length, inclusion, exclusion, format,
    numericality, with

Each rule takes either ``True``/a shorthand value or an options dict.
Every options dict accepts ``message`` to override the default text.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from form_sync.schema.models import FieldDefinition, FormDefinitionError, FormSchema

FormValidator = Callable[[Mapping[str, Any]], Mapping[str, list[str]] | None]


class ValidationResult(BaseModel):
    """Outcome of validating one form's values."""

    valid: bool
    errors: dict[str, list[str]] = {}

    @property
    def error_count(self) -> int:
        """Total number of messages."""
        return sum(len(messages) for messages in self.errors.values())

    def __bool__(self) -> bool:
        return self.valid


@runtime_checkable
class ValidationEngine(Protocol):
    """Protocol for pluggable validation engines."""

    def validate(
        self,
        values: Mapping[str, Any],
        schema: FormSchema,
    ) -> ValidationResult:
        """Validate a form's values.

        Args:
            values: Current field values; nested forms as dicts, collections
                as lists of dicts.
            schema: The schema the values belong to.

        Returns:
            ValidationResult with per-field messages.
        """
        ...


def is_blank(value: Any) -> bool:
    """None, whitespace-only strings and empty containers are blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _options(rule: Any, shorthand: str | None = None) -> dict[str, Any]:
    """Normalize a rule value to an options dict."""
    if isinstance(rule, dict):
        return rule
    if rule is True or shorthand is None:
        return {}
    return {shorthand: rule}


class RuleEngine:
    """Evaluates declarative per-field rules.

    Args:
        validators: Optional whole-form validators. Each receives the values
            mapping and returns ``{field: [messages]}`` or None; use them for
            cross-field checks.
    """

    def __init__(self, validators: list[FormValidator] | None = None) -> None:
        self.validators = list(validators or [])
        self._rules: dict[str, Callable[[Any, dict[str, Any], Mapping[str, Any]], list[str]]] = {
            "presence": self._check_presence,
            "absence": self._check_absence,
            "length": self._check_length,
            "inclusion": self._check_inclusion,
            "exclusion": self._check_exclusion,
            "format": self._check_format,
            "numericality": self._check_numericality,
            "with": self._check_with,
        }

    @property
    def rule_names(self) -> list[str]:
        return list(self._rules)

    def validate(
        self,
        values: Mapping[str, Any],
        schema: FormSchema,
    ) -> ValidationResult:
        errors: dict[str, list[str]] = {}

        for field in schema:
            messages = self.validate_field(field, values.get(field.name), values)
            if messages:
                errors.setdefault(field.name, []).extend(messages)

        for validator in self.validators:
            extra = validator(values) or {}
            for name, messages in extra.items():
                bucket = errors.setdefault(name, [])
                bucket.extend(m for m in messages if m not in bucket)

        return ValidationResult(valid=not errors, errors=errors)

    def validate_field(
        self,
        field: FieldDefinition,
        value: Any,
        values: Mapping[str, Any],
    ) -> list[str]:
        """Run every rule declared on one field."""
        messages: list[str] = []
        for rule_name, rule in field.validates.items():
            if rule is False or rule is None:
                continue
            check = self._rules.get(rule_name)
            if check is None:
                raise FormDefinitionError(
                    f"Unknown validation rule {rule_name!r} on field {field.name!r}"
                )
            for message in check(value, self._rule_options(rule_name, rule), values):
                if message not in messages:
                    messages.append(message)
        return messages

    def _rule_options(self, rule_name: str, rule: Any) -> dict[str, Any]:
        shorthands = {
            "inclusion": "in",
            "exclusion": "in",
            "format": "with",
            "with": "with",
        }
        return _options(rule, shorthands.get(rule_name))

    def _check_presence(self, value, options, values) -> list[str]:
        if is_blank(value):
            return [options.get("message", "can't be blank")]
        return []

    def _check_absence(self, value, options, values) -> list[str]:
        if not is_blank(value):
            return [options.get("message", "must be blank")]
        return []

    def _check_length(self, value, options, values) -> list[str]:
        if value is None:
            return []
        unit = "characters" if isinstance(value, str) else "items"
        try:
            size = len(value)
        except TypeError:
            return [options.get("message", "has no length")]

        minimum = options.get("minimum")
        maximum = options.get("maximum")
        bounds = options.get("in")
        if isinstance(bounds, range):
            # range(1, 5) allows lengths 1 through 4
            minimum, maximum = bounds.start, bounds.stop - 1
        elif bounds is not None:
            minimum, maximum = bounds
        exact = options.get("is")

        if exact is not None and size != exact:
            return [options.get("message", f"is the wrong length (should be {exact} {unit})")]
        if minimum is not None and size < minimum:
            return [options.get("message", f"is too short (minimum is {minimum} {unit})")]
        if maximum is not None and size > maximum:
            return [options.get("message", f"is too long (maximum is {maximum} {unit})")]
        return []

    def _check_inclusion(self, value, options, values) -> list[str]:
        if value is None:
            return []
        if value not in options.get("in", ()):
            return [options.get("message", "is not included in the list")]
        return []

    def _check_exclusion(self, value, options, values) -> list[str]:
        if value is None:
            return []
        if value in options.get("in", ()):
            return [options.get("message", "is reserved")]
        return []

    def _check_format(self, value, options, values) -> list[str]:
        if value is None:
            return []
        pattern = options.get("with")
        if pattern is None:
            raise FormDefinitionError("format rule needs a 'with' pattern")
        if not isinstance(value, str) or re.search(pattern, value) is None:
            return [options.get("message", "is invalid")]
        return []

    def _check_numericality(self, value, options, values) -> list[str]:
        if value is None:
            return []
        if isinstance(value, bool):
            return [options.get("message", "is not a number")]
        if not isinstance(value, (int, float)):
            try:
                value = float(value)
            except (TypeError, ValueError):
                return [options.get("message", "is not a number")]

        if options.get("only_integer") and not float(value).is_integer():
            return [options.get("message", "must be an integer")]

        comparisons = [
            ("greater_than", lambda a, b: a > b, "must be greater than {}"),
            ("greater_than_or_equal_to", lambda a, b: a >= b, "must be greater than or equal to {}"),
            ("less_than", lambda a, b: a < b, "must be less than {}"),
            ("less_than_or_equal_to", lambda a, b: a <= b, "must be less than or equal to {}"),
            ("equal_to", lambda a, b: a == b, "must be equal to {}"),
        ]
        messages = []
        for key, passes, template in comparisons:
            if key in options and not passes(value, options[key]):
                messages.append(options.get("message", template.format(options[key])))
        return messages

    def _check_with(self, value, options, values) -> list[str]:
        check = options.get("with")
        if not callable(check):
            raise FormDefinitionError("'with' rule needs a callable")
        result = check(value, values)
        if not result:
            return []
        if isinstance(result, str):
            return [result]
        return list(result)
