"""Step executor for a single job."""

from structlog import get_logger

from .base_step import PipelineStep
from .context import JobContext

logger = get_logger(__name__)


class JobPipeline:
    """Executes the steps of one job.

    The pipeline:
    1. Executes steps strictly in declared order
    2. Passes context between steps
    3. Stops at the first failing step; every step is required
    4. Collects step results and statistics
    """

    def __init__(self, name: str, steps: list[PipelineStep]):
        """Initialize the pipeline.

        Args:
            name: Job name for logging
            steps: List of steps to execute in order
        """
        self.name = name
        self.steps = steps
        self.logger = logger.bind(job=name)

    async def execute(self, context: JobContext) -> JobContext:
        """Execute the job's steps.

        Args:
            context: Job context

        Returns:
            Updated context with results
        """
        log = self.logger.bind(run_id=context.run_id)
        log.info("Job steps starting", step_count=len(self.steps))

        successful_steps = 0

        for step in self.steps:
            step_name = step.get_name()
            log.info("Executing step", step=step_name)

            if not await step.run(context):
                log.error("Step failed, stopping job", step=step_name)
                break
            successful_steps += 1

        context.success = successful_steps == len(self.steps) and not context.has_errors()

        log.info(
            "Job steps completed",
            success=context.success,
            successful_steps=successful_steps,
            skipped_steps=len(self.steps) - len(context.step_results),
        )

        return context
