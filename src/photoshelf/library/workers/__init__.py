"""Background workers."""

from .preview_worker import (
    GeneratePreviews,
    GeneratePreviewsSignals,
    GeneratePreviewsWorker,
    PipelineState,
)

__all__ = [
    "GeneratePreviews",
    "GeneratePreviewsSignals",
    "GeneratePreviewsWorker",
    "PipelineState",
]
