"""Data models for submission diagnostics.

Tracks status, errors and warnings for each submission processed
through the pipeline.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Stage = Literal["input", "coercion", "validation", "sync"]


class ProcessingStatus(str, Enum):
    """Status of submission processing."""

    SUCCESS = "success"  # Valid, no warnings
    PARTIAL = "partial"  # Valid, but with warnings (e.g. dropped input)
    FAILED = "failed"  # Coercion/validation errors or a sync failure


class DiagnosticError(BaseModel):
    """An error that occurred during processing."""

    stage: Stage
    code: str  # Error code like "COERCION_FAILED"
    message: str
    field: str | None = None
    details: dict | None = None


class DiagnosticWarning(BaseModel):
    """A warning that occurred during processing."""

    stage: Stage
    code: str  # Warning code like "UNDECLARED_FIELD"
    message: str
    field: str | None = None
    details: dict | None = None


class SubmissionDiagnostic(BaseModel):
    """Diagnostics for one processed submission."""

    submission_id: str
    form_id: str
    form_version: str
    status: ProcessingStatus
    errors: list[DiagnosticError] = Field(default_factory=list)
    warnings: list[DiagnosticWarning] = Field(default_factory=list)
    dropped_fields: list[str] = Field(default_factory=list)
    synced: bool = False
