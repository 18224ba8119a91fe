"""Pipeline services package."""

from pages_pipeline.services.job_graph import JobGraph
from pages_pipeline.services.runner import PipelineRunner

__all__ = [
    "JobGraph",
    "PipelineRunner",
]
