"""Pipeline for submission processing.

Loads a form spec from the registry, binds a form to each record's
model, validates the record's params and syncs valid submissions.
"""

import copy
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from form_sync.accessors import MissingAccessorError
from form_sync.diagnostics import DiagnosticsCollector, SubmissionDiagnostic
from form_sync.form.form import Form, placeholder_for
from form_sync.registry import FormRegistry

logger = logging.getLogger(__name__)


class PipelineConfig(BaseModel):
    """Configuration for the processing pipeline."""

    registry_path: Path
    form_id: str
    form_version: str | None = None
    schema_path: Path | None = None
    sync: bool = True


class SubmissionResult(BaseModel):
    """Result of processing a single submission."""

    submission_id: str
    valid: bool
    errors: dict[str, list[str]]
    values: dict[str, Any]
    model: dict[str, Any]
    diagnostics: SubmissionDiagnostic


class Pipeline:
    """Validates submissions against a registry form and syncs them."""

    def __init__(self, config: PipelineConfig) -> None:
        """Initialize the pipeline.

        Args:
            config: Pipeline configuration specifying registry and form.
        """
        self.config = config
        self.registry = FormRegistry(config.registry_path, schema_path=config.schema_path)

        if config.form_version:
            self.spec = self.registry.get(config.form_id, config.form_version)
        else:
            self.spec = self.registry.get_latest(config.form_id)
        self.form_class: type[Form] = self.registry.build(self.spec.form_id, self.spec.version)

    def process(self, record: dict[str, Any]) -> SubmissionResult:
        """Process one submission record.

        Args:
            record: Dict with:
                - submission_id: str (optional)
                - model: dict - current model state (optional; blank if absent)
                - params: dict - untrusted input

        Returns:
            SubmissionResult with validation outcome and model state. Params
            that are not an object and models that cannot be synced are
            reported in the diagnostics rather than raised.

        Raises:
            MissingAccessorError: If the model lacks a declared field.
            TypeError: If a collection in the model is not iterable.
        """
        submission_id = str(record.get("submission_id", "unknown"))
        params = record.get("params")
        if params is None:
            params = {}
        model = copy.deepcopy(record.get("model"))
        if model is None:
            model = placeholder_for(self.form_class.schema)

        collector = DiagnosticsCollector(
            submission_id=submission_id,
            form_id=self.spec.form_id,
            form_version=self.spec.version,
        )
        form = self.form_class(model)

        if not isinstance(params, Mapping):
            message = f"params must be an object, got {type(params).__name__}"
            logger.warning("Rejected %s: %s", submission_id, message)
            collector.add_error(stage="input", code="INVALID_INPUT", message=message)
            return SubmissionResult(
                submission_id=submission_id,
                valid=False,
                errors={"base": [message]},
                values=form.to_nested_hash(),
                model=model,
                diagnostics=collector.finalize(),
            )

        collector.collect_from_input(form, params)
        valid = form.validate(params)
        collector.collect_from_form(form)

        if valid and self.config.sync:
            try:
                form.sync()
            except MissingAccessorError as e:
                logger.warning("Could not sync %s: %s", submission_id, e)
                collector.add_error(stage="sync", code="MISSING_SETTER", message=str(e), field=e.field)
            else:
                collector.mark_synced()

        logger.info(
            "Processed %s with %s@%s: %s",
            submission_id, self.spec.form_id, self.spec.version,
            "valid" if valid else "invalid",
        )

        return SubmissionResult(
            submission_id=submission_id,
            valid=valid,
            errors=form.errors.messages,
            values=form.to_nested_hash(),
            model=model,
            diagnostics=collector.finalize(),
        )

    def process_batch(self, records: list[dict[str, Any]]) -> list[SubmissionResult]:
        """Process a batch of submission records."""
        return [self.process(r) for r in records]
