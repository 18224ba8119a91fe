"""Step to package the built site as the job's pages artifact."""

import asyncio
from typing import Optional

from pages_pipeline.errors import ArtifactError
from pages_pipeline.services.pipeline import JobContext, PipelineStep

PAGES_ARTIFACT_NAME = "github-pages"


class UploadPagesArtifactStep(PipelineStep):
    """Package a workspace directory into the run's artifact store."""

    def __init__(
        self,
        path: str,
        artifact_name: str = PAGES_ARTIFACT_NAME,
        name: Optional[str] = None,
        step_id: Optional[str] = None,
        timeout_minutes: Optional[float] = None,
    ):
        super().__init__(name or "Upload pages artifact", step_id, timeout_minutes)
        self.path = path
        self.artifact_name = artifact_name

    async def execute(self, context: JobContext) -> bool:
        """Upload the artifact.

        Raises:
            ArtifactError: If the job already produced an artifact, or the
                path is missing or empty
        """
        if context.artifact is not None:
            raise ArtifactError(
                f"Job already produced artifact {context.artifact.name!r}",
                job_name=context.job_name,
                step_name=self.name,
            )

        source = context.resolve_path(self.path)
        artifact = await asyncio.to_thread(
            context.artifact_store.save, self.artifact_name, source
        )
        context.artifact = artifact
        context.set_output(self.step_id, "artifact_id", artifact.sha256)

        self.logger.info(
            "Uploaded pages artifact",
            run_id=context.run_id,
            artifact=artifact.name,
            size=artifact.size,
            file_count=artifact.file_count,
        )
        return True
