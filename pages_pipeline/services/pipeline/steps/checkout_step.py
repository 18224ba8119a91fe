"""Step to check out the source tree into the job workspace."""

import asyncio
import shutil
from pathlib import Path
from typing import Optional

from pages_pipeline.errors import StepExecutionError
from pages_pipeline.services.pipeline import JobContext, PipelineStep

IGNORED = shutil.ignore_patterns(".git", "target")


class CheckoutStep(PipelineStep):
    """Copy the configured source tree into the workspace.

    Build outputs (``target``) and VCS metadata are not copied, so every
    job starts from clean sources.
    """

    def __init__(
        self,
        source_dir: Path,
        path: str = ".",
        name: Optional[str] = None,
        step_id: Optional[str] = None,
        timeout_minutes: Optional[float] = None,
    ):
        super().__init__(name or "Checkout", step_id, timeout_minutes)
        self.source_dir = Path(source_dir)
        self.path = path

    async def execute(self, context: JobContext) -> bool:
        source = self.source_dir.resolve()
        if not source.is_dir():
            raise StepExecutionError(
                f"Source directory not found: {source}",
                job_name=context.job_name,
                step_name=self.name,
            )

        destination = context.resolve_path(self.path)
        await asyncio.to_thread(
            shutil.copytree, source, destination, ignore=IGNORED, dirs_exist_ok=True
        )

        self.logger.info(
            "Checked out sources",
            run_id=context.run_id,
            source=str(source),
            destination=str(destination),
        )
        return True
