"""Step to publish the pages artifact to the hosting environment."""

import asyncio
from typing import Optional

from pages_pipeline.deploy import PagesDeployer
from pages_pipeline.errors import ArtifactError, PermissionDeniedError
from pages_pipeline.services.pipeline import JobContext, PipelineStep

from .upload_pages_artifact_step import PAGES_ARTIFACT_NAME

REQUIRED_PERMISSIONS = ("pages", "id-token")


class DeployPagesStep(PipelineStep):
    """Deploy an injected artifact and expose the published URL as ``page_url``."""

    def __init__(
        self,
        deployer: PagesDeployer,
        artifact_name: str = PAGES_ARTIFACT_NAME,
        name: Optional[str] = None,
        step_id: Optional[str] = None,
        timeout_minutes: Optional[float] = None,
    ):
        """Initialize the step.

        Args:
            deployer: Backend that publishes the site
            artifact_name: Name of the upstream artifact to deploy
            name: Step display name
            step_id: Optional step id
            timeout_minutes: Optional limit on step duration
        """
        super().__init__(name or "Deploy pages", step_id, timeout_minutes)
        self.deployer = deployer
        self.artifact_name = artifact_name

    async def execute(self, context: JobContext) -> bool:
        """Deploy the artifact.

        Raises:
            PermissionDeniedError: If the job lacks pages/id-token write access
            ArtifactError: If the artifact was not injected or is empty
            DeploymentError: If the backend fails to publish
        """
        missing = [scope for scope in REQUIRED_PERMISSIONS if not context.job.has_permission(scope)]
        if missing:
            raise PermissionDeniedError(
                f"Job {context.job_name!r} needs write permission for: {', '.join(missing)}",
                job_name=context.job_name,
                step_name=self.name,
            )

        artifact = context.artifacts_in.get(self.artifact_name)
        if artifact is None:
            raise ArtifactError(
                f"Artifact {self.artifact_name!r} was not provided by an upstream job",
                job_name=context.job_name,
                step_name=self.name,
            )
        if artifact.is_empty():
            raise ArtifactError(
                f"Artifact {self.artifact_name!r} is empty or missing on disk",
                job_name=context.job_name,
                step_name=self.name,
            )

        environment = context.job.environment.name if context.job.environment else "default"
        page_url = await asyncio.to_thread(self.deployer.deploy, artifact, environment)
        context.set_output(self.step_id, "page_url", page_url)

        self.logger.info(
            "Deployed pages",
            run_id=context.run_id,
            environment=environment,
            page_url=page_url,
            sha256=artifact.sha256,
        )
        return True
