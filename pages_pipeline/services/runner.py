"""Pipeline runner: trigger evaluation and dependency-ordered job execution."""

import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from structlog import get_logger

from pages_pipeline.artifacts import ArtifactStore
from pages_pipeline.config import Settings, settings as default_settings
from pages_pipeline.deploy import PagesDeployer
from pages_pipeline.errors import EnvironmentUnavailableError, UnknownActionError
from pages_pipeline.models import (
    Artifact,
    Job,
    JobResult,
    JobStatus,
    PipelineResult,
    RunState,
    StepResult,
    StepStatus,
    TriggerEvent,
    Workflow,
)
from pages_pipeline.services.job_graph import JobGraph
from pages_pipeline.services.pipeline import JobContext, JobPipeline, PipelineStep
from pages_pipeline.services.pipeline.steps import ActionRegistry

logger = get_logger(__name__)


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


class PipelineRunner:
    """Runs a workflow's jobs for matching trigger events.

    Each job gets a fresh workspace that is discarded afterwards; the
    only state shared between jobs is the artifacts handed downstream.
    """

    def __init__(
        self,
        workflow: Workflow,
        settings: Optional[Settings] = None,
        registry: Optional[ActionRegistry] = None,
        deployer: Optional[PagesDeployer] = None,
    ):
        """Initialize the runner.

        Args:
            workflow: Workflow to run
            settings: Application settings; the global settings when omitted
            registry: Step builder; created from settings when omitted
            deployer: Pages backend handed to the registry when it is created here

        Raises:
            WorkflowDefinitionError: If the job graph is invalid
        """
        self.workflow = workflow
        self.settings = settings or default_settings
        self.graph = JobGraph.from_workflow(workflow)
        self.registry = registry or ActionRegistry(self.settings, deployer)
        self.logger = logger.bind(workflow=workflow.name)

    @property
    def workdir(self) -> Path:
        return Path(self.settings.runner.workdir)

    def evaluate_trigger(self, event: TriggerEvent) -> bool:
        """True only if the event type and branch literally match the trigger."""
        trigger = self.workflow.trigger
        return event.event_name == trigger.event and event.branch in trigger.branches

    def _failed_before_start(
        self,
        job: Job,
        message: str,
        failed_step: Optional[StepResult] = None,
    ) -> JobResult:
        self.logger.error("Job could not start", job=job.name, error=message)
        return JobResult(
            job=job.name,
            status=JobStatus.FAILED,
            runs_on=job.runs_on,
            steps=[failed_step] if failed_step else [],
            failed_step=failed_step,
            exit_status=1,
            environment=job.environment.name if job.environment else None,
            errors=[{"step": failed_step.name if failed_step else "", "message": message}],
        )

    async def run_job(
        self,
        job: Job,
        artifacts: Optional[dict[str, Artifact]] = None,
        run_id: Optional[str] = None,
        artifact_store: Optional[ArtifactStore] = None,
    ) -> JobResult:
        """Execute a job's steps in order in a fresh workspace.

        Stops at the first failing step and reports its identity and exit
        status. A job may produce at most one artifact.

        Args:
            job: Job to execute
            artifacts: Artifacts injected from upstream jobs, keyed by name
            run_id: Pipeline run identifier; generated when omitted
            artifact_store: Store for uploaded artifacts; per-run store when omitted

        Returns:
            Result of the job
        """
        run_id = run_id or new_run_id()
        log = self.logger.bind(run_id=run_id, job=job.name)

        if job.runs_on not in self.settings.runner.labels:
            error = EnvironmentUnavailableError(
                f"No execution environment for runs-on {job.runs_on!r}; "
                f"available: {', '.join(self.settings.runner.labels)}",
                job_name=job.name,
            )
            return self._failed_before_start(job, str(error))

        steps: list[PipelineStep] = []
        for position, definition in enumerate(job.steps):
            try:
                steps.append(self.registry.build(definition))
            except UnknownActionError as e:
                failed = StepResult(
                    index=position,
                    name=definition.display_name,
                    step_id=definition.id,
                    status=StepStatus.FAILED,
                    exit_status=1,
                    error=str(e),
                )
                return self._failed_before_start(job, str(e), failed)

        store = artifact_store or ArtifactStore(self.workdir / "artifacts", run_id)
        workspaces = self.workdir / "workspaces"
        workspaces.mkdir(parents=True, exist_ok=True)
        workspace = Path(tempfile.mkdtemp(prefix=f"{run_id}-{job.name}-", dir=workspaces))

        context = JobContext(job, workspace, run_id, store, artifacts)
        log.info(
            "Job starting",
            runs_on=job.runs_on,
            workspace=str(workspace),
            artifacts_in=sorted(context.artifacts_in),
        )

        try:
            await JobPipeline(job.name, steps).execute(context)
        finally:
            if self.settings.runner.keep_workspaces:
                log.info("Keeping workspace", workspace=str(workspace))
            else:
                shutil.rmtree(workspace, ignore_errors=True)

        failed_step = next(
            (r for r in context.step_results if r.status == StepStatus.FAILED), None
        )
        environment_url = None
        if job.environment is not None and context.success:
            environment_url = context.resolve(job.environment.url) or None

        result = JobResult(
            job=job.name,
            status=JobStatus.SUCCEEDED if context.success else JobStatus.FAILED,
            runs_on=job.runs_on,
            steps=context.step_results,
            failed_step=failed_step,
            exit_status=failed_step.exit_status if failed_step else 0,
            artifact=context.artifact,
            outputs=context.step_outputs,
            environment=job.environment.name if job.environment else None,
            environment_url=environment_url,
            errors=context.errors,
        )

        if result.success:
            log.info("Job succeeded", **context.get_results())
        else:
            log.error(
                "Job failed",
                failed_step=failed_step.name if failed_step else None,
                failed_step_index=failed_step.index if failed_step else None,
                exit_status=result.exit_status,
            )
        return result

    def _transition(self, result: PipelineResult, state: RunState, job: Optional[str] = None) -> None:
        result.transition(state, job)
        self.logger.info("Pipeline state changed", run_id=result.run_id, state=state.value, job=job)

    async def run_pipeline(self, event: TriggerEvent) -> PipelineResult:
        """Run the workflow for an event.

        Non-matching events end in ``skipped`` without running anything.
        Otherwise jobs run in dependency order; a job whose needs did not all
        succeed is never started, and any failure fails the pipeline.

        Args:
            event: Incoming trigger event

        Returns:
            Result of the pipeline run
        """
        result = PipelineResult(run_id=new_run_id(), workflow=self.workflow.name)
        self._transition(result, RunState.PENDING)

        if not self.evaluate_trigger(event):
            self.logger.info(
                "Event does not match trigger",
                run_id=result.run_id,
                event_name=event.event_name,
                branch=event.branch,
            )
            self._transition(result, RunState.SKIPPED)
            return result

        self._transition(result, RunState.TRIGGERED)
        self.logger.info(
            "Pipeline triggered",
            run_id=result.run_id,
            event_name=event.event_name,
            branch=event.branch,
            sha=event.sha,
        )

        store = ArtifactStore(self.workdir / "artifacts", result.run_id)
        completed: dict[str, JobResult] = {}

        for job in self.graph.order():
            unmet = [need for need in job.needs if not completed[need].success]
            if unmet:
                message = f"Job {job.name!r} not started: {', '.join(unmet)} did not succeed"
                self.logger.warning(message, run_id=result.run_id, job=job.name)
                result.errors.append(message)
                job_result = JobResult(
                    job=job.name,
                    status=JobStatus.NOT_STARTED,
                    runs_on=job.runs_on,
                    environment=job.environment.name if job.environment else None,
                )
                completed[job.name] = job_result
                result.jobs.append(job_result)
                continue

            artifacts = {
                completed[need.name].artifact.name: completed[need.name].artifact
                for need in self.graph.needs_of(job.name)
                if completed[need.name].artifact is not None
            }

            self._transition(result, RunState.JOB_RUNNING, job.name)
            job_result = await self.run_job(job, artifacts, result.run_id, store)
            completed[job.name] = job_result
            result.jobs.append(job_result)

            if job_result.success:
                self._transition(result, RunState.JOB_SUCCEEDED, job.name)
                if job_result.environment_url:
                    result.page_url = job_result.environment_url
            else:
                self._transition(result, RunState.JOB_FAILED, job.name)
                for error in job_result.errors:
                    result.errors.append(f"{job.name}/{error['step']}: {error['message']}")

        if all(r.success for r in result.jobs):
            self._transition(result, RunState.SUCCEEDED)
        else:
            self._transition(result, RunState.FAILED)
        return result
