"""Pipeline for submission processing."""

from form_sync.pipeline.orchestrator import Pipeline, PipelineConfig, SubmissionResult

__all__ = [
    "Pipeline",
    "PipelineConfig",
    "SubmissionResult",
]
