"""Exception hierarchy for the pipeline runner.

All runner exceptions inherit from PipelineError so callers can catch
broadly or narrowly. Each carries the job and step it was raised for,
when known, so failures are identifiable from the logs.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        job_name: str | None = None,
        step_name: str | None = None,
    ) -> None:
        self.job_name = job_name
        self.step_name = step_name
        super().__init__(message)


class WorkflowDefinitionError(PipelineError):
    """The workflow document or job graph is invalid."""
    pass


class StepExecutionError(PipelineError):
    """A step failed during execution."""

    def __init__(self, message: str, *, exit_status: int = 1, **kwargs) -> None:
        self.exit_status = exit_status
        super().__init__(message, **kwargs)


class UnknownActionError(PipelineError):
    """A step references an action this runner does not provide."""
    pass


class PermissionDeniedError(PipelineError):
    """The job lacks a permission an action requires."""
    pass


class ArtifactError(PipelineError):
    """An artifact is missing, empty, or could not be packaged."""
    pass


class DeploymentError(PipelineError):
    """Publishing to the pages target failed."""
    pass


class EnvironmentUnavailableError(PipelineError):
    """No execution environment matches the job's runs-on label."""
    pass
