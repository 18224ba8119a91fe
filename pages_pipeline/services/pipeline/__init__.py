"""Step execution infrastructure for pipeline jobs."""

from .base_step import PipelineStep
from .context import JobContext
from .pipeline import JobPipeline

__all__ = [
    "PipelineStep",
    "JobContext",
    "JobPipeline",
]
