"""Persistence trigger: sync, then save.

The caller is responsible for only saving forms that validated.
"""

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from form_sync.accessors import MissingAccessorError
from form_sync.sync.synchronizer import Synchronizer

if TYPE_CHECKING:
    from form_sync.form.form import Form

logger = logging.getLogger(__name__)


def save(form: "Form", block: Callable[[dict[str, Any]], Any] | None = None) -> Any:
    """Sync the form graph, then persist it.

    Args:
        form: The (validated) form to save.
        block: Optional callable that receives the synced data as a plain
            nested dict. When given, it replaces the default save and its
            return value is returned.

    Returns:
        The block's result, or True after saving every model.

    Raises:
        MissingAccessorError: If a setter is missing, or a non-mapping
            model has no save() method.
    """
    Synchronizer().sync(form)

    if block is not None:
        return block(form.to_nested_hash())

    saved = _save_graph(form, set())
    logger.info("%s: saved %d model(s)", type(form).__name__, saved)
    return True


def _save_graph(form: "Form", seen: set[int]) -> int:
    """Save children before parents; each model at most once."""
    count = 0
    for field in form.schema.nested():
        if field.virtual or not field.writeable or not field.save:
            continue
        value = form[field.name]
        children = value if field.collection else [value]
        for child in children:
            count += _save_graph(child, seen)

    for model in form.models.values():
        if id(model) in seen:
            continue
        seen.add(id(model))
        count += _save_model(model)
    return count


def _save_model(model: Any) -> int:
    if isinstance(model, Mapping):
        # Plain mappings and placeholders have nothing to persist
        return 0
    persist = getattr(model, "save", None)
    if not callable(persist):
        raise MissingAccessorError("save", model, "save() method")
    persist()
    return 1
