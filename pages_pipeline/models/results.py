"""Run states and result models for steps, jobs and pipelines."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pages_pipeline.models.artifact import Artifact


class RunState(str, Enum):
    """Pipeline run states.

    Job scoped states (job_running, job_succeeded, job_failed) are recorded
    together with the name of the job they refer to.
    """

    PENDING = "pending"
    TRIGGERED = "triggered"
    SKIPPED = "skipped"
    JOB_RUNNING = "job_running"
    JOB_SUCCEEDED = "job_succeeded"
    JOB_FAILED = "job_failed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.SKIPPED, RunState.SUCCEEDED, RunState.FAILED)


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOT_STARTED = "not_started"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateTransition(BaseModel):
    state: RunState
    job: Optional[str] = None
    at: datetime = Field(default_factory=_utcnow)


class StepResult(BaseModel):
    """Outcome of one step."""

    index: int
    name: str
    step_id: Optional[str] = None
    status: StepStatus
    exit_status: int = 0
    outputs: dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    duration_seconds: float = 0.0


class JobResult(BaseModel):
    """Outcome of one job."""

    job: str
    status: JobStatus
    runs_on: Optional[str] = None
    steps: list[StepResult] = Field(default_factory=list)
    failed_step: Optional[StepResult] = None
    exit_status: int = 0
    artifact: Optional[Artifact] = None
    outputs: dict[str, dict[str, str]] = Field(default_factory=dict)
    environment: Optional[str] = None
    environment_url: Optional[str] = None
    errors: list[dict[str, str]] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == JobStatus.SUCCEEDED


class PipelineResult(BaseModel):
    """Outcome of a whole pipeline run."""

    run_id: str
    workflow: str
    state: RunState = RunState.PENDING
    transitions: list[StateTransition] = Field(default_factory=list)
    jobs: list[JobResult] = Field(default_factory=list)
    page_url: Optional[str] = None
    errors: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state == RunState.SUCCEEDED

    @property
    def exit_code(self) -> int:
        """Process exit code: failures are non-zero, skipped runs are a no-op."""
        return 1 if self.state == RunState.FAILED else 0

    def transition(self, state: RunState, job: Optional[str] = None) -> None:
        self.state = state
        self.transitions.append(StateTransition(state=state, job=job))

    def job_result(self, name: str) -> Optional[JobResult]:
        for result in self.jobs:
            if result.job == name:
                return result
        return None
