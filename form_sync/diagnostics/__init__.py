"""Diagnostics collection for submission processing.

Tracks errors, warnings and dropped input for each submission
handled by the pipeline.
"""

from form_sync.diagnostics.collector import DiagnosticsCollector
from form_sync.diagnostics.models import (
    DiagnosticError,
    DiagnosticWarning,
    ProcessingStatus,
    SubmissionDiagnostic,
)

__all__ = [
    "DiagnosticError",
    "DiagnosticWarning",
    "DiagnosticsCollector",
    "ProcessingStatus",
    "SubmissionDiagnostic",
]
