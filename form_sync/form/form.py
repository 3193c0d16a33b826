"""Form objects.

A Form is declared with a schema of fields and bound to one or more
models. Values are read from the models exactly once, at construction.
From then on the form only works on its own copy:

    form = AlbumForm(album)
    if form.validate(params):     # filter, coerce, assign, validate
        form.save()               # sync onto models, then persist

Models are never written outside ``sync()``/``save()``.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any, ClassVar

from form_sync.accessors import Accessor, MissingAccessorError, resolve_accessor
from form_sync.coercion.coercer import Coercer, default_coercer
from form_sync.schema.declaration import Property
from form_sync.schema.models import FieldDefinition, FormDefinitionError, FormSchema
from form_sync.validation.engine import RuleEngine, ValidationEngine
from form_sync.validation.errors import Errors

logger = logging.getLogger(__name__)

MAIN_ROLE = "model"


class FieldDescriptor:
    """Class-level handle for a declared field.

    Reads and writes go to the form's own values, never to the model.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def __get__(self, instance: "Form | None", owner: type) -> Any:
        if instance is None:
            return owner.schema.get(self.name)
        return instance._values[self.name]

    def __set__(self, instance: "Form", value: Any) -> None:
        instance._assign(self.name, value)


def placeholder_for(schema: FormSchema) -> dict[str, Any]:
    """Blank mapping model standing in for an absent association."""
    return {
        field.attribute: [] if field.collection else None
        for field in schema
        if not field.virtual
    }


class FormCollection:
    """Ordered child forms of a collection field.

    Membership changes made here are written to the model's collection on
    the next sync.
    """

    def __init__(self, form_class: type["Form"], children: list["Form"] | None = None) -> None:
        self.form_class = form_class
        self._children: list[Form] = list(children or [])

    def _wrap(self, item: Any) -> "Form":
        if isinstance(item, Form):
            return item
        return self.form_class(item)

    def append(self, item: Any) -> "Form":
        """Append a child form, or a new child form bound to a model."""
        child = self._wrap(item)
        self._children.append(child)
        return child

    def insert(self, index: int, item: Any) -> "Form":
        child = self._wrap(item)
        self._children.insert(index, child)
        return child

    def remove(self, item: Any) -> None:
        """Remove a child form, or the child bound to the given model."""
        child = self.find(item)
        if child is None:
            raise ValueError(f"{item!r} is not in the collection")
        self._children.remove(child)

    def pop(self, index: int = -1) -> "Form":
        return self._children.pop(index)

    def find(self, item: Any) -> "Form | None":
        """Find a child by identity, or by the model it is bound to."""
        for child in self._children:
            if child is item or child.model is item:
                return child
        return None

    @property
    def models(self) -> list[Any]:
        return [child.model for child in self._children]

    def __getitem__(self, index: int) -> "Form":
        return self._children[index]

    def __iter__(self) -> Iterator["Form"]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __repr__(self) -> str:
        return f"FormCollection({self._children!r})"


class Form:
    """Base class for form objects.

    Subclasses declare fields as class attributes (see ``Property`` and
    ``Collection``) and may select their own validation engine and coercer.
    """

    schema: ClassVar[FormSchema] = FormSchema()
    engine: ClassVar[ValidationEngine] = RuleEngine()
    coercer: ClassVar[Coercer] = default_coercer

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Inherit the parent's fields; the body's declarations override them
        cls.schema = cls.schema.copy()
        for name, value in list(vars(cls).items()):
            if isinstance(value, Property):
                cls._install(name, value)

    @classmethod
    def declare(cls, name: str, type: Any = None, **options: Any) -> FieldDefinition:
        """Declare a field after class creation (last write wins)."""
        return cls._install(name, Property(type, **options))

    @classmethod
    def _install(cls, name: str, declaration: Property) -> FieldDefinition:
        if name in RESERVED_NAMES or name.startswith("_"):
            raise FormDefinitionError(f"{cls.__name__}: {name!r} cannot be used as a field name")

        nested = declaration.options.get("form")
        if isinstance(nested, dict):
            inline = build_form_class(f"{cls.__name__}_{name}", nested)
            declaration = Property(declaration.type, **{**declaration.options, "form": inline})
        elif nested is not None and not (isinstance(nested, type) and issubclass(nested, Form)):
            raise FormDefinitionError(
                f"{cls.__name__}.{name}: form= must be a Form subclass or a dict of fields"
            )

        definition = declaration.define(name)
        if not definition.nested and definition.populator is None:
            cls.coercer.resolve(definition.type)
        if isinstance(cls.engine, RuleEngine):
            unknown = set(definition.validates) - set(cls.engine.rule_names)
            if unknown:
                raise FormDefinitionError(
                    f"{cls.__name__}.{name}: unknown validation rules {sorted(unknown)}"
                )

        cls.schema.add(definition)
        setattr(cls, name, FieldDescriptor(name))
        return definition

    def __init__(self, model: Any = None, /, **models: Any) -> None:
        """Bind the form to its model(s) and read every declared field.

        Args:
            model: The main model.
            **models: Models by role, for fields declared with ``on=``.

        Raises:
            MissingAccessorError: If a readable field has no getter.
        """
        if model is None and not models:
            raise TypeError(f"{type(self).__name__} needs at least one model")

        self._models: dict[str, Any] = {}
        if model is not None:
            self._models[MAIN_ROLE] = model
        self._models.update(models)
        self._accessors: dict[str, Accessor] = {
            role: resolve_accessor(bound) for role, bound in self._models.items()
        }

        self._values: dict[str, Any] = {}
        self._changed: set[str] = set()
        self._coercion_errors = Errors()
        self._errors = Errors()

        for field in self.schema:
            if field.nested:
                self._values[field.name] = self._read_nested(field)
            else:
                self._values[field.name] = self._read_scalar(field)

    # -- binding ---------------------------------------------------------

    def _role_for(self, field: FieldDefinition) -> str:
        role = field.on or MAIN_ROLE
        if role == MAIN_ROLE and role not in self._models:
            # With only role-bound models, the first one is the main model
            return next(iter(self._models))
        if role not in self._models:
            raise MissingAccessorError(field.name, self, f"bound model for role {role!r}")
        return role

    def model_for(self, field: FieldDefinition) -> Any:
        """The model a field reads from and syncs to."""
        return self._models[self._role_for(field)]

    def accessor_for(self, field: FieldDefinition) -> Accessor:
        return self._accessors[self._role_for(field)]

    @property
    def model(self) -> Any:
        """The main bound model."""
        if MAIN_ROLE in self._models:
            return self._models[MAIN_ROLE]
        return next(iter(self._models.values()))

    @property
    def models(self) -> dict[str, Any]:
        """All bound models by role."""
        return dict(self._models)

    # -- read phase ------------------------------------------------------

    def _read_raw(self, field: FieldDefinition) -> Any:
        if field.virtual or not field.readable:
            return None
        return self.accessor_for(field).get(self.model_for(field), field.attribute)

    def _read_scalar(self, field: FieldDefinition) -> Any:
        value = self._read_raw(field)
        if value is None:
            return field.get_default()
        return value

    def _read_nested(self, field: FieldDefinition) -> Any:
        source = self._read_raw(field)
        if field.collection:
            return FormCollection(field.form, [field.form(item) for item in source or []])
        if source is None:
            source = self.new_model(field)
        return field.form(source)

    def new_model(self, field: FieldDefinition) -> Any:
        """Model for a new nested form: the field's factory, or a placeholder."""
        if field.populate_if_empty is not None:
            return field.populate_if_empty()
        return placeholder_for(field.form.schema)

    # -- values ----------------------------------------------------------

    def _assign(self, name: str, value: Any) -> None:
        if name not in self.schema:
            raise AttributeError(f"{type(self).__name__} has no field {name!r}")
        if self._values.get(name) is not value and self._values.get(name) != value:
            self._changed.add(name)
        self._values[name] = value

    def __getitem__(self, name: str) -> Any:
        if name not in self.schema:
            raise KeyError(name)
        return self._values[name]

    def fields(self) -> Iterator[tuple[str, Any]]:
        """Yield (name, value) pairs in declaration order."""
        for name in self.schema.names:
            yield name, self._values[name]

    def changed(self, name: str | None = None) -> bool:
        """Whether a field (or any field) changed since construction."""
        if name is None:
            return any(self.changed(n) for n in self.schema.names)
        field = self.schema.get(name)
        if field is None:
            raise KeyError(name)
        if name in self._changed:
            return True
        if field.collection:
            return any(child.changed() for child in self._values[name])
        if field.nested:
            return self._values[name].changed()
        return False

    def to_nested_hash(self) -> dict[str, Any]:
        """Current values as plain nested dicts and lists."""
        result: dict[str, Any] = {}
        for field in self.schema:
            value = self._values[field.name]
            if field.collection:
                result[field.name] = [child.to_nested_hash() for child in value]
            elif field.nested:
                result[field.name] = value.to_nested_hash()
            else:
                result[field.name] = value
        return result

    def prepopulate(self) -> "Form":
        """Run prepopulators, parents before children, e.g. before rendering."""
        for field in self.schema:
            if field.prepopulator is not None:
                field.prepopulator(self)
        for child in self.children():
            child.prepopulate()
        return self

    def children(self) -> Iterator["Form"]:
        """Nested child forms in declaration order."""
        for field in self.schema.nested():
            value = self._values[field.name]
            if field.collection:
                yield from value
            else:
                yield value

    # -- validation ------------------------------------------------------

    @property
    def errors(self) -> Errors:
        """Errors from the last validate() call."""
        return self._errors

    def validate(self, params: Mapping[str, Any] | None = None) -> bool:
        """Merge input and validate the result.

        Undeclared keys are ignored. Coercion failures become field errors
        and leave the previous value in place. Values stay merged whatever
        the outcome. Without params, the current values are re-validated.

        Returns:
            True if there are no errors anywhere in the form graph.
        """
        from form_sync.form.deserializer import Deserializer

        self._reset_coercion_errors()
        if params is not None:
            Deserializer().deserialize(self, params)
        return self._run_validation()

    @property
    def coercion_errors(self) -> Errors:
        """Coercion failures from the last input merge, across the graph."""
        errors = Errors()
        errors.merge(self._coercion_errors)
        for field in self.schema.nested():
            value = self._values[field.name]
            for child in value if field.collection else [value]:
                errors.merge(child.coercion_errors, prefix=field.name)
        return errors

    def _reset_coercion_errors(self) -> None:
        self._coercion_errors = Errors()
        for child in self.children():
            child._reset_coercion_errors()

    def _run_validation(self) -> bool:
        errors = Errors()
        errors.merge(self._coercion_errors)

        result = self.engine.validate(self.to_nested_hash(), self.schema)
        for name, messages in result.errors.items():
            # A field that failed coercion kept its old value; don't judge it
            if name not in self._coercion_errors:
                errors.merge({name: messages})

        for field in self.schema.nested():
            value = self._values[field.name]
            children = value if field.collection else [value]
            for child in children:
                child._run_validation()
                errors.merge(child.errors, prefix=field.name)

        self._errors = errors
        if errors:
            logger.debug("%s invalid: %s", type(self).__name__, errors.messages)
        return not errors

    # -- write phase -----------------------------------------------------

    def sync(self) -> None:
        """Write current values onto the bound models (no persistence)."""
        from form_sync.sync.synchronizer import Synchronizer

        Synchronizer().sync(self)

    def save(self, block: Callable[[dict[str, Any]], Any] | None = None) -> Any:
        """Sync, then persist the models or hand the data to ``block``."""
        from form_sync.sync.persistence import save

        return save(self, block)

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value!r}" for name, value in self.fields())
        return f"<{type(self).__name__} {values}>"


RESERVED_NAMES = frozenset(name for name in dir(Form) if not name.startswith("_"))


def build_form_class(
    name: str,
    fields: FormSchema | dict[str, Any],
    engine: ValidationEngine | None = None,
    base: type[Form] = Form,
) -> type[Form]:
    """Build a Form subclass from a schema or a dict of declarations.

    Args:
        name: Class name for the new form.
        fields: A FormSchema, or a mapping of field name to Property.
        engine: Optional validation engine for the new class.
        base: Base form class.

    Returns:
        The new Form subclass.
    """
    namespace: dict[str, Any] = {}
    if engine is not None:
        namespace["engine"] = engine

    if isinstance(fields, FormSchema):
        form_class = type(name, (base,), namespace)
        for definition in fields:
            options = {
                key: getattr(definition, key)
                for key in FieldDefinition.model_fields
                if key not in ("name", "type")
            }
            form_class._install(definition.name, Property(definition.type, **options))
        return form_class

    for field_name, declaration in fields.items():
        if not isinstance(declaration, Property):
            raise FormDefinitionError(
                f"{name}.{field_name}: expected a Property, got {declaration!r}"
            )
        namespace[field_name] = declaration
    return type(name, (base,), namespace)
