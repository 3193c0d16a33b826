"""Field and schema definitions for form classes.

A FormSchema is an ordered mapping of field name to FieldDefinition.
Definitions are frozen once built; redeclaring a name replaces the
whole definition (last write wins).
"""

from collections.abc import Callable, Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class FormDefinitionError(Exception):
    """Raised when a form or field declaration is invalid."""

    pass


class _Unset:
    """Sentinel for 'no default declared'."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<UNSET>"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


class FieldDefinition(BaseModel):
    """Declaration of a single form field."""

    name: str
    type: Any = None  # Python type, registered type name, or callable
    form: Any = None  # nested Form subclass
    collection: bool = False
    default: Any = UNSET
    validates: dict[str, Any] = {}
    populator: Callable[..., Any] | None = None
    populate_if_empty: Callable[[], Any] | None = None
    prepopulator: Callable[..., Any] | None = None
    skip_if: Callable[[Any], bool] | str | None = None
    virtual: bool = False
    readable: bool = True
    writeable: bool = True
    from_: str | None = None
    on: str | None = None
    wire: bool = True
    save: bool = True

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def check_nesting(self) -> "FieldDefinition":
        """A collection must hold nested forms."""
        if self.collection and self.form is None:
            raise FormDefinitionError(
                f"Collection field {self.name!r} needs a nested form"
            )
        if isinstance(self.skip_if, str) and self.skip_if != "all_blank":
            raise FormDefinitionError(
                f"Unknown skip_if strategy for {self.name!r}: {self.skip_if!r}"
            )
        return self

    @property
    def nested(self) -> bool:
        """Whether the field holds a nested form (single or collection)."""
        return self.form is not None

    @property
    def attribute(self) -> str:
        """Model attribute the field reads from and writes to."""
        return self.from_ or self.name

    def get_default(self) -> Any:
        """Return the declared default, or None."""
        if self.default is UNSET:
            return None
        if callable(self.default):
            return self.default()
        return self.default


class FormSchema:
    """Ordered collection of field definitions for one form class."""

    def __init__(self, fields: dict[str, FieldDefinition] | None = None) -> None:
        self._fields: dict[str, FieldDefinition] = dict(fields or {})

    def add(self, definition: FieldDefinition) -> FieldDefinition:
        """Register a field, replacing any earlier field of the same name."""
        self._fields[definition.name] = definition
        return definition

    def get(self, name: str) -> FieldDefinition | None:
        """Get a field definition by name."""
        return self._fields.get(name)

    def copy(self) -> "FormSchema":
        """Return a shallow copy, used when a subclass inherits fields."""
        return FormSchema(self._fields)

    @property
    def names(self) -> list[str]:
        """Declared field names in declaration order."""
        return list(self._fields)

    def nested(self) -> list[FieldDefinition]:
        """Fields that hold a nested form or a collection of them."""
        return [f for f in self._fields.values() if f.nested]

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FormSchema({self.names!r})"
