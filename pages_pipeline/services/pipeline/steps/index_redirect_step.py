"""Step to write the root index redirect into the built docs."""

from typing import Optional

from pages_pipeline.errors import StepExecutionError
from pages_pipeline.services.pipeline import JobContext, PipelineStep
from pages_pipeline.site import write_index_redirect


class IndexRedirectStep(PipelineStep):
    """Make the site root redirect to the crate's documentation entry page."""

    def __init__(
        self,
        crate_name: str,
        path: str = "./target/doc",
        name: Optional[str] = None,
        step_id: Optional[str] = None,
        timeout_minutes: Optional[float] = None,
    ):
        super().__init__(name or "Index redirect", step_id, timeout_minutes)
        self.crate_name = crate_name
        self.path = path

    async def execute(self, context: JobContext) -> bool:
        doc_dir = context.resolve_path(self.path)
        if not doc_dir.is_dir():
            raise StepExecutionError(
                f"Documentation directory not found: {self.path}",
                job_name=context.job_name,
                step_name=self.name,
            )

        index = write_index_redirect(doc_dir, self.crate_name)
        self.logger.info(
            "Wrote index redirect",
            run_id=context.run_id,
            index=str(index),
            crate=self.crate_name,
        )
        return True
