"""Base class for pipeline steps."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

from structlog import get_logger

from pages_pipeline.errors import PipelineError
from pages_pipeline.models import StepResult, StepStatus

logger = get_logger(__name__)

# Exit status reported for steps killed by their timeout, as coreutils timeout does
TIMEOUT_EXIT_STATUS = 124


class PipelineStep(ABC):
    """Abstract base class for pipeline steps.

    Each step should:
    1. Implement execute() method
    2. Read inputs and upstream artifacts from context
    3. Perform its work inside the job workspace
    4. Write outputs back to context
    5. Raise (StepExecutionError carries an exit status) or return False on failure
    """

    def __init__(
        self,
        name: str | None = None,
        step_id: Optional[str] = None,
        timeout_minutes: Optional[float] = None,
    ):
        """Initialize the pipeline step.

        Args:
            name: Optional custom name for the step. Defaults to class name.
            step_id: Id other steps and expressions use to address outputs
            timeout_minutes: Optional limit on step duration
        """
        self.name = name or self.__class__.__name__
        self.step_id = step_id
        self.timeout_minutes = timeout_minutes
        self.logger = logger.bind(step=self.name)

    @abstractmethod
    async def execute(self, context: "JobContext") -> bool:
        """Execute the pipeline step.

        Args:
            context: Job context containing shared data

        Returns:
            True if step succeeded, False if failed
        """
        pass

    async def _execute_with_timeout(self, context: "JobContext") -> bool:
        if self.timeout_minutes is None:
            return await self.execute(context)
        return await asyncio.wait_for(self.execute(context), timeout=self.timeout_minutes * 60)

    async def run(self, context: "JobContext") -> bool:
        """Run the step with error handling and logging.

        The outcome is appended to ``context.step_results``.

        Args:
            context: Job context

        Returns:
            True if step succeeded, False if failed
        """
        index = len(context.step_results)
        log = self.logger.bind(run_id=context.run_id, job=context.job_name, index=index)
        log.info("Step starting")

        started = time.monotonic()
        exit_status = 0
        error: Optional[str] = None

        try:
            errors_before = len(context.errors)
            success = await self._execute_with_timeout(context)
            if not success:
                exit_status = 1
                if len(context.errors) > errors_before:
                    error = context.errors[-1]["message"]
                else:
                    error = "Step reported failure"
                    context.add_error(self.name, error)
                log.warning("Step completed with failure", error=error)

        except asyncio.TimeoutError:
            success = False
            exit_status = TIMEOUT_EXIT_STATUS
            error = f"Step timed out after {self.timeout_minutes} minutes"
            log.error("Step timed out", timeout_minutes=self.timeout_minutes)
            context.add_error(self.name, error)

        except Exception as e:
            success = False
            exit_status = getattr(e, "exit_status", 1)
            error = str(e)
            # Runner errors are expected failures; anything else gets a traceback
            log.error(
                "Step failed with exception",
                error=error,
                exit_status=exit_status,
                exc_info=not isinstance(e, PipelineError),
            )
            context.add_error(self.name, error)

        if success:
            log.info("Step completed successfully")

        context.step_results.append(
            StepResult(
                index=index,
                name=self.name,
                step_id=self.step_id,
                status=StepStatus.SUCCEEDED if success else StepStatus.FAILED,
                exit_status=exit_status,
                outputs=dict(context.step_outputs.get(self.step_id, {})) if self.step_id else {},
                error=error,
                duration_seconds=round(time.monotonic() - started, 3),
            )
        )
        return success

    def get_name(self) -> str:
        """Get the step name.

        Returns:
            Step name
        """
        return self.name
