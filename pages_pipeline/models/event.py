"""Trigger event model."""

from typing import Optional

from pydantic import BaseModel, Field

BRANCH_REF_PREFIX = "refs/heads/"


class TriggerEvent(BaseModel):
    """An incoming event that may start a pipeline run."""

    event_name: str = Field(default="push", description="Event type, e.g. push")
    ref: str = Field(description="Full ref (refs/heads/main) or bare branch name")
    sha: Optional[str] = Field(None, description="Commit the event points at")

    @property
    def branch(self) -> str:
        """Branch name the event was raised for."""
        if self.ref.startswith(BRANCH_REF_PREFIX):
            return self.ref[len(BRANCH_REF_PREFIX):]
        return self.ref
