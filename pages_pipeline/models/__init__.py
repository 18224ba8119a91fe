"""Workflow, event, artifact and result models."""

from pages_pipeline.models.artifact import Artifact
from pages_pipeline.models.event import TriggerEvent
from pages_pipeline.models.results import (
    JobResult,
    JobStatus,
    PipelineResult,
    RunState,
    StateTransition,
    StepResult,
    StepStatus,
)
from pages_pipeline.models.workflow import (
    ActionStep,
    CommandStep,
    DeploymentEnvironment,
    Job,
    Step,
    Trigger,
    Workflow,
)

__all__ = [
    "ActionStep",
    "Artifact",
    "CommandStep",
    "DeploymentEnvironment",
    "Job",
    "JobResult",
    "JobStatus",
    "PipelineResult",
    "RunState",
    "StateTransition",
    "Step",
    "StepResult",
    "StepStatus",
    "Trigger",
    "TriggerEvent",
    "Workflow",
]
