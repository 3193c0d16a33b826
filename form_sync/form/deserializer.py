"""Merges external input into a form graph.

Only declared fields are ever assigned; everything else in the input is
dropped. Scalars go through the field's coercion rule. Nested input is
matched to child forms by key, collection input by position.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from form_sync.coercion.coercer import CoercionError
from form_sync.form.form import Form
from form_sync.schema.models import FieldDefinition, FormSchema
from form_sync.validation.engine import is_blank

logger = logging.getLogger(__name__)

INVALID = "is invalid"


def collection_fragments(raw: Any) -> list[Any] | None:
    """Normalize collection input to a list.

    Accepts a list/tuple, or a mapping with integer-like keys
    (``{"0": {...}, "1": {...}}``), ordered by key. Returns None for
    anything else.
    """
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        return list(raw)
    if isinstance(raw, Mapping):
        try:
            keyed = sorted((int(key), value) for key, value in raw.items())
        except (TypeError, ValueError):
            return None
        return [value for _, value in keyed]
    return None


def undeclared_keys(schema: FormSchema, params: Mapping[str, Any], prefix: str = "") -> list[str]:
    """Dotted paths of every input key the schema will drop."""
    dropped: list[str] = []
    for key, raw in params.items():
        path = f"{prefix}{key}"
        field = schema.get(key) if isinstance(key, str) else None
        if field is None:
            dropped.append(path)
        elif field.collection:
            for fragment in collection_fragments(raw) or []:
                if isinstance(fragment, Mapping):
                    for name in undeclared_keys(field.form.schema, fragment, f"{path}."):
                        if name not in dropped:
                            dropped.append(name)
        elif field.nested and isinstance(raw, Mapping):
            dropped.extend(undeclared_keys(field.form.schema, raw, f"{path}."))
    return dropped


class Deserializer:
    """Filters, coerces and assigns input onto a form and its children."""

    def deserialize(self, form: Form, params: Mapping[str, Any]) -> None:
        """Merge ``params`` into ``form``.

        Raises:
            TypeError: If params is not a mapping.
        """
        if not isinstance(params, Mapping):
            raise TypeError(
                f"{type(form).__name__} input must be a mapping, got {type(params).__name__}"
            )

        dropped = [key for key in params if key not in form.schema]
        if dropped:
            logger.debug("%s: dropping undeclared input %s", type(form).__name__, dropped)

        for field in form.schema:
            if field.name not in params:
                continue
            raw = params[field.name]
            if field.collection:
                self._collection(form, field, raw)
            elif field.nested:
                self._nested(form, field, raw)
            else:
                self._scalar(form, field, raw)

    def _scalar(self, form: Form, field: FieldDefinition, raw: Any) -> None:
        if field.populator is not None:
            form._assign(field.name, field.populator(raw, form))
            return

        try:
            value = form.coercer.coerce(raw, field.type)
        except CoercionError as e:
            logger.debug("%s.%s: coercion of %r failed: %s", type(form).__name__, field.name, raw, e)
            form._coercion_errors.add(field.name, str(e))
            return
        form._assign(field.name, value)

    def _nested(self, form: Form, field: FieldDefinition, raw: Any) -> None:
        if raw is None:
            return
        if not isinstance(raw, Mapping):
            form._coercion_errors.add(field.name, INVALID)
            return
        if self._skip(field, raw):
            return

        if field.populator is not None:
            target = field.populator(raw, form)
            if target is None:
                return
            child = target if isinstance(target, Form) else field.form(target)
            form._assign(field.name, child)
        else:
            child = form[field.name]

        self.deserialize(child, raw)

    def _collection(self, form: Form, field: FieldDefinition, raw: Any) -> None:
        fragments = collection_fragments(raw)
        if fragments is None:
            form._coercion_errors.add(field.name, INVALID)
            return

        collection = form[field.name]
        for position, fragment in enumerate(fragments):
            if not isinstance(fragment, Mapping):
                form._coercion_errors.add(field.name, INVALID)
                continue
            if self._skip(field, fragment):
                continue

            if field.populator is not None:
                target = field.populator(fragment, form)
                if target is None:
                    continue
                child = collection.find(target)
                if child is None:
                    child = collection.append(target)
                    form._changed.add(field.name)
            elif position < len(collection):
                child = collection[position]
            else:
                child = collection.append(form.new_model(field))
                form._changed.add(field.name)
                logger.debug(
                    "%s.%s: grew collection to %d", type(form).__name__, field.name, len(collection)
                )

            self.deserialize(child, fragment)

    def _skip(self, field: FieldDefinition, fragment: Mapping[str, Any]) -> bool:
        if field.skip_if is None:
            return False
        if field.skip_if == "all_blank":
            return all(is_blank(value) for value in fragment.values())
        return bool(field.skip_if(fragment))
