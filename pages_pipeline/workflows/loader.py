"""Load workflow documents from JSON files."""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from structlog import get_logger

from pages_pipeline.errors import WorkflowDefinitionError
from pages_pipeline.models import Trigger, Workflow
from pages_pipeline.services.job_graph import JobGraph

logger = get_logger(__name__)


def _parse_trigger(on: Any) -> Trigger:
    if not isinstance(on, dict) or len(on) != 1:
        raise WorkflowDefinitionError(
            "'on' must map exactly one event to its filter, e.g. {\"push\": {\"branches\": [\"main\"]}}"
        )
    (event, event_filter), = on.items()
    branches = (event_filter or {}).get("branches")
    if not branches:
        raise WorkflowDefinitionError(f"Trigger {event!r} needs a non-empty branches list")
    if isinstance(branches, str):
        branches = [branches]
    return Trigger(event=event, branches=branches)


def workflow_from_dict(data: dict[str, Any], default_name: str = "workflow") -> Workflow:
    """Build a workflow from a document using CI file keys.

    Jobs are keyed by name under ``jobs`` and keep their document order.

    Raises:
        WorkflowDefinitionError: If the document is malformed or the job graph is invalid
    """
    if not isinstance(data, dict):
        raise WorkflowDefinitionError("Workflow document must be an object")

    jobs = data.get("jobs")
    if not isinstance(jobs, dict) or not jobs:
        raise WorkflowDefinitionError("Workflow document needs at least one job under 'jobs'")

    try:
        workflow = Workflow(
            name=data.get("name", default_name),
            trigger=_parse_trigger(data.get("on")),
            jobs=[{**(job or {}), "name": job_name} for job_name, job in jobs.items()],
        )
    except ValidationError as e:
        raise WorkflowDefinitionError(f"Invalid workflow document: {e}") from e

    # Fail on broken needs before anything runs
    JobGraph.from_workflow(workflow)
    return workflow


def load_workflow(path: Path) -> Workflow:
    """Read and validate a JSON workflow file.

    Raises:
        WorkflowDefinitionError: If the file is unreadable, not JSON, or invalid
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise WorkflowDefinitionError(f"Cannot read workflow file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise WorkflowDefinitionError(f"Workflow file {path} is not valid JSON: {e}") from e

    workflow = workflow_from_dict(data, default_name=path.stem)
    logger.info("Loaded workflow", path=str(path), workflow=workflow.name, jobs=len(workflow.jobs))
    return workflow
