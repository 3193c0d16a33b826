"""Collector for submission diagnostics.

Collects errors and warnings while a submission moves through the
pipeline and produces a SubmissionDiagnostic for it.
"""

from collections.abc import Mapping
from typing import Any

from form_sync.diagnostics.models import (
    DiagnosticError,
    DiagnosticWarning,
    ProcessingStatus,
    Stage,
    SubmissionDiagnostic,
)
from form_sync.form.deserializer import undeclared_keys
from form_sync.form.form import Form


class DiagnosticsCollector:
    """Collects diagnostics for one submission."""

    def __init__(
        self,
        submission_id: str,
        form_id: str,
        form_version: str,
    ) -> None:
        """Initialize the collector for a submission.

        Args:
            submission_id: Unique identifier for the submission.
            form_id: Identifier of the form spec used.
            form_version: Version of the form spec used.
        """
        self.submission_id = submission_id
        self.form_id = form_id
        self.form_version = form_version

        self._errors: list[DiagnosticError] = []
        self._warnings: list[DiagnosticWarning] = []
        self._dropped: list[str] = []
        self._synced = False

    def add_error(
        self,
        stage: Stage,
        code: str,
        message: str,
        field: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Add an error to the diagnostics."""
        self._errors.append(
            DiagnosticError(stage=stage, code=code, message=message, field=field, details=details)
        )

    def add_warning(
        self,
        stage: Stage,
        code: str,
        message: str,
        field: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Add a warning to the diagnostics."""
        self._warnings.append(
            DiagnosticWarning(stage=stage, code=code, message=message, field=field, details=details)
        )

    def collect_from_input(self, form: Form, params: Mapping[str, Any]) -> None:
        """Record input keys the form dropped."""
        for path in undeclared_keys(form.schema, params):
            self._dropped.append(path)
            self.add_warning(
                stage="input",
                code="UNDECLARED_FIELD",
                message=f"Input field {path} is not declared and was ignored",
                field=path,
            )

    def collect_from_form(self, form: Form) -> None:
        """Record coercion and validation errors from the last validate()."""
        coercion = form.coercion_errors
        for field, messages in coercion.messages.items():
            for message in messages:
                self.add_error(
                    stage="coercion",
                    code="COERCION_FAILED",
                    message=f"{field} {message}",
                    field=field,
                )

        for field, messages in form.errors.messages.items():
            for message in messages:
                if message in coercion[field]:
                    continue
                self.add_error(
                    stage="validation",
                    code="VALIDATION_FAILED",
                    message=f"{field} {message}",
                    field=field,
                )

    def mark_synced(self) -> None:
        self._synced = True

    def finalize(self) -> SubmissionDiagnostic:
        """Finalize and return the diagnostic report."""
        if self._errors:
            status = ProcessingStatus.FAILED
        elif self._warnings:
            status = ProcessingStatus.PARTIAL
        else:
            status = ProcessingStatus.SUCCESS

        return SubmissionDiagnostic(
            submission_id=self.submission_id,
            form_id=self.form_id,
            form_version=self.form_version,
            status=status,
            errors=self._errors,
            warnings=self._warnings,
            dropped_fields=self._dropped,
            synced=self._synced,
        )
