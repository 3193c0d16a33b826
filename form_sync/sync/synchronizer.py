"""Synchronizer for writing form values back onto models.

Sync runs in two passes:

1. Preflight: walk the whole form graph and check every setter exists.
   A missing setter raises MissingAccessorError before anything is written.
2. Write: depth-first. Children are written onto their own models before
   the parent wires the child model into its association. Fields declared
   with ``wire=False`` (single or collection) skip the wiring step.

Exceptions raised by a model's setter during the write pass propagate
as-is; writes already made stay in place.
"""

import logging
from typing import TYPE_CHECKING

from form_sync.accessors import MissingAccessorError
from form_sync.schema.models import FieldDefinition

if TYPE_CHECKING:
    from form_sync.form.form import Form

logger = logging.getLogger(__name__)


def _writes(field: FieldDefinition) -> bool:
    return field.writeable and not field.virtual


def _needs_setter(field: FieldDefinition) -> bool:
    return not field.nested or field.wire


class Synchronizer:
    """Writes a form graph onto its bound models. Never persists."""

    def sync(self, form: "Form") -> None:
        """Sync a form and all its children.

        Raises:
            MissingAccessorError: If any field in the graph has no setter.
        """
        problems = self.preflight(form)
        if problems:
            raise problems[0]
        self._write(form)

    def preflight(self, form: "Form") -> list[MissingAccessorError]:
        """Collect every missing setter in the graph without writing."""
        problems: list[MissingAccessorError] = []

        for field in form.schema:
            if not _writes(field):
                continue

            if field.nested:
                value = form[field.name]
                children = value if field.collection else [value]
                for child in children:
                    problems.extend(self.preflight(child))

            if not _needs_setter(field):
                continue
            try:
                model = form.model_for(field)
            except MissingAccessorError as e:
                problems.append(e)
                continue
            if not form.accessor_for(field).has_setter(model, field.attribute):
                problems.append(MissingAccessorError(field.name, model, "setter"))

        return problems

    def _write(self, form: "Form") -> None:
        for field in form.schema:
            if not _writes(field):
                continue

            model = form.model_for(field)
            accessor = form.accessor_for(field)
            value = form[field.name]

            if field.collection:
                for child in value:
                    self._write(child)
                if not field.wire:
                    continue
                accessor.set(model, field.attribute, value.models)
                logger.debug(
                    "%s.%s: wrote %d collection members",
                    type(form).__name__, field.name, len(value),
                )
            elif field.nested:
                self._write(value)
                if field.wire:
                    accessor.set(model, field.attribute, value.model)
            else:
                accessor.set(model, field.attribute, value)
