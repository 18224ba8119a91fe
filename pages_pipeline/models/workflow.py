"""Pydantic models for workflow definitions.

Field aliases follow the keys used in CI workflow files (``runs-on``,
``with``, ``timeout-minutes``) so documents validate without renaming.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


class Trigger(BaseModel):
    """Condition under which the pipeline runs."""

    event: str = Field(default="push", description="Event type that starts a run")
    branches: list[str] = Field(default_factory=list, description="Branch filter list")


class _StepBase(BaseModel):
    id: Optional[str] = Field(None, description="Step id, used to reference outputs")
    name: Optional[str] = Field(None, description="Human readable step name")
    timeout_minutes: Optional[float] = Field(
        None,
        alias="timeout-minutes",
        description="Kill the step after this many minutes; unset means no limit",
    )

    class Config:
        populate_by_name = True
        extra = "forbid"


class ActionStep(_StepBase):
    """Reference to a reusable action pinned to a version."""

    uses: str = Field(description="Action reference, name@version")
    with_: dict[str, Any] = Field(
        default_factory=dict,
        alias="with",
        description="Action input parameters",
    )

    @field_validator("uses")
    @classmethod
    def _require_version(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError(f"action reference {value!r} must be pinned as name@version")
        return value

    @property
    def action(self) -> str:
        return self.uses.rsplit("@", 1)[0]

    @property
    def version(self) -> str:
        return self.uses.rsplit("@", 1)[1]

    @property
    def display_name(self) -> str:
        return self.name or self.uses


class CommandStep(_StepBase):
    """Inline shell command."""

    run: str = Field(description="Shell command string")
    working_directory: Optional[str] = Field(None, alias="working-directory")

    @property
    def display_name(self) -> str:
        return self.name or self.run.splitlines()[0]


Step = Union[ActionStep, CommandStep]


class DeploymentEnvironment(BaseModel):
    """Named publishing target with an observable URL."""

    name: str
    url: Optional[str] = Field(
        None,
        description="Literal URL or a ${{ steps.<id>.outputs.<key> }} expression",
    )


class Job(BaseModel):
    """Independently scheduled unit of ordered steps."""

    name: str
    runs_on: str = Field(alias="runs-on", description="Execution environment label")
    steps: list[Step] = Field(default_factory=list)
    needs: list[str] = Field(default_factory=list, description="Jobs that must succeed first")
    permissions: dict[str, str] = Field(default_factory=dict)
    environment: Optional[DeploymentEnvironment] = None

    class Config:
        populate_by_name = True

    @field_validator("needs", mode="before")
    @classmethod
    def _single_need(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _named_environment(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"name": value}
        return value

    def has_permission(self, scope: str, level: str = "write") -> bool:
        """Check whether the job was granted ``level`` access to ``scope``."""
        granted = self.permissions.get(scope)
        if level == "read":
            return granted in ("read", "write")
        return granted == level


class Workflow(BaseModel):
    """A trigger plus the jobs it starts, in declaration order."""

    name: str
    trigger: Trigger
    jobs: list[Job]

    def get_job(self, name: str) -> Job:
        """Return the job called ``name``.

        Raises:
            KeyError: If the workflow has no such job
        """
        for job in self.jobs:
            if job.name == name:
                return job
        raise KeyError(name)
