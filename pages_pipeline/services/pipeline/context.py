"""Job context for sharing data between steps."""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pages_pipeline.artifacts import ArtifactStore
from pages_pipeline.models import Artifact, Job, StepResult

_EXPRESSION = re.compile(
    r"\$\{\{\s*steps\.([A-Za-z0-9_-]+)\.outputs\.([A-Za-z0-9_-]+)\s*\}\}"
)


class JobContext:
    """Context object for passing data between the steps of one job.

    This object is passed to each step and accumulates step results,
    outputs and the produced artifact as the job progresses.
    """

    def __init__(
        self,
        job: Job,
        workspace: Path,
        run_id: str,
        artifact_store: ArtifactStore,
        artifacts: Optional[dict[str, Artifact]] = None,
    ):
        """Initialize job context.

        Args:
            job: Job being executed
            workspace: Fresh working directory for this job
            run_id: Identifier of the pipeline run
            artifact_store: Store for artifacts uploaded by this run
            artifacts: Artifacts injected from the jobs this one needs
        """
        self.job = job
        self.job_name = job.name
        self.workspace = workspace
        self.run_id = run_id
        self.artifact_store = artifact_store
        self.start_time = datetime.now(timezone.utc)

        # Inputs from upstream jobs
        self.artifacts_in: dict[str, Artifact] = dict(artifacts or {})

        # Produced by this job
        self.artifact: Optional[Artifact] = None
        self.step_outputs: dict[str, dict[str, str]] = {}
        self.step_results: list[StepResult] = []

        # Errors encountered during processing
        self.errors: list[dict[str, str]] = []

        self.success: bool = False

    def add_error(self, step_name: str, error_message: str) -> None:
        """Add an error to the context.

        Args:
            step_name: Name of the step where error occurred
            error_message: Error message
        """
        self.errors.append({
            "step": step_name,
            "message": error_message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def set_output(self, step_id: Optional[str], key: str, value: str) -> None:
        """Record a step output; steps without an id have unaddressable outputs."""
        if step_id:
            self.step_outputs.setdefault(step_id, {})[key] = value

    def resolve(self, text: Optional[str]) -> Optional[str]:
        """Substitute ``${{ steps.<id>.outputs.<key> }}`` with recorded outputs.

        Unknown references resolve to an empty string.
        """
        if text is None:
            return None
        return _EXPRESSION.sub(
            lambda m: self.step_outputs.get(m.group(1), {}).get(m.group(2), ""),
            text,
        )

    def resolve_path(self, relative: str) -> Path:
        """Resolve a step input path against the workspace, refusing to escape it."""
        path = (self.workspace / relative).resolve()
        workspace = self.workspace.resolve()
        if path != workspace and workspace not in path.parents:
            raise ValueError(f"Path {relative!r} escapes the job workspace")
        return path

    def has_errors(self) -> bool:
        """Check if any errors were encountered.

        Returns:
            True if errors exist, False otherwise
        """
        return len(self.errors) > 0

    def get_results(self) -> dict[str, Any]:
        """Get final results dictionary.

        Returns:
            Dictionary containing step results, outputs and timing
        """
        end_time = datetime.now(timezone.utc)
        duration = (end_time - self.start_time).total_seconds()

        return {
            "job": self.job_name,
            "run_id": self.run_id,
            "success": self.success,
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "duration_seconds": duration,
            "errors": self.errors,
            "outputs": self.step_outputs,
            "artifact": self.artifact.name if self.artifact else None,
        }
