"""Model accessors.

A form never assumes how a model stores its state. It resolves one
accessor per bound model and goes through it for every read and write:

- Mapping models (dicts, placeholders) use item access.
- Any other object uses attribute access.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any, Protocol, runtime_checkable


class MissingAccessorError(Exception):
    """Raised when a bound model lacks an accessor a field needs."""

    def __init__(self, field: str, model: Any, kind: str = "getter") -> None:
        self.field = field
        self.model = model
        self.kind = kind
        super().__init__(
            f"{type(model).__name__} has no {kind} for field {field!r}"
        )


@runtime_checkable
class Accessor(Protocol):
    """Get/set access to a model's fields by name."""

    def has_getter(self, model: Any, name: str) -> bool:
        ...

    def has_setter(self, model: Any, name: str) -> bool:
        ...

    def get(self, model: Any, name: str) -> Any:
        ...

    def set(self, model: Any, name: str, value: Any) -> None:
        ...


class AttributeAccessor:
    """Attribute access for plain objects."""

    def has_getter(self, model: Any, name: str) -> bool:
        return hasattr(model, name)

    def has_setter(self, model: Any, name: str) -> bool:
        if not hasattr(model, name):
            return False
        params = getattr(type(model), "__dataclass_params__", None)
        if params is not None and params.frozen:
            return False
        descriptor = getattr(type(model), name, None)
        if isinstance(descriptor, property):
            return descriptor.fset is not None
        return True

    def get(self, model: Any, name: str) -> Any:
        if not self.has_getter(model, name):
            raise MissingAccessorError(name, model, "getter")
        return getattr(model, name)

    def set(self, model: Any, name: str, value: Any) -> None:
        if not self.has_setter(model, name):
            raise MissingAccessorError(name, model, "setter")
        setattr(model, name, value)


class MappingAccessor:
    """Item access for mapping models."""

    def has_getter(self, model: Any, name: str) -> bool:
        return name in model

    def has_setter(self, model: Any, name: str) -> bool:
        return isinstance(model, MutableMapping) and name in model

    def get(self, model: Any, name: str) -> Any:
        if name not in model:
            raise MissingAccessorError(name, model, "getter")
        return model[name]

    def set(self, model: Any, name: str, value: Any) -> None:
        if not self.has_setter(model, name):
            raise MissingAccessorError(name, model, "setter")
        model[name] = value


_ATTRIBUTE = AttributeAccessor()
_MAPPING = MappingAccessor()


def resolve_accessor(model: Any) -> Accessor:
    """Pick the accessor for a model, once per binding."""
    if isinstance(model, Mapping):
        return _MAPPING
    return _ATTRIBUTE
