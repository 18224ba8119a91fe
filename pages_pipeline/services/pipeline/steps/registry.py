"""Maps workflow step definitions to executable steps."""

from typing import Callable, Optional

from structlog import get_logger

from pages_pipeline.config import Settings
from pages_pipeline.deploy import PagesDeployer, get_deployer
from pages_pipeline.errors import UnknownActionError
from pages_pipeline.models import ActionStep, CommandStep, Step
from pages_pipeline.services.pipeline import PipelineStep

from .checkout_step import CheckoutStep
from .deploy_pages_step import DeployPagesStep
from .index_redirect_step import IndexRedirectStep
from .run_command_step import RunCommandStep
from .upload_pages_artifact_step import PAGES_ARTIFACT_NAME, UploadPagesArtifactStep

logger = get_logger(__name__)

CHECKOUT = "actions/checkout"
UPLOAD_PAGES_ARTIFACT = "actions/upload-pages-artifact"
DEPLOY_PAGES = "actions/deploy-pages"
INDEX_REDIRECT = "pages-pipeline/index-redirect"

# Versions whose inputs and outputs the local implementations honour
SUPPORTED_VERSIONS: dict[str, frozenset[str]] = {
    CHECKOUT: frozenset({"v3", "v4"}),
    UPLOAD_PAGES_ARTIFACT: frozenset({"v1", "v2", "v3"}),
    DEPLOY_PAGES: frozenset({"v1", "v2", "v4"}),
    INDEX_REDIRECT: frozenset({"v1"}),
}


class ActionRegistry:
    """Builds PipelineStep objects for command and action step definitions."""

    def __init__(self, settings: Settings, deployer: Optional[PagesDeployer] = None):
        """Initialize the registry.

        Args:
            settings: Application settings
            deployer: Pages backend; built from settings on first use when omitted
        """
        self.settings = settings
        self._deployer = deployer
        self._factories: dict[str, Callable[[ActionStep], PipelineStep]] = {
            CHECKOUT: self._checkout,
            UPLOAD_PAGES_ARTIFACT: self._upload_pages_artifact,
            DEPLOY_PAGES: self._deploy_pages,
            INDEX_REDIRECT: self._index_redirect,
        }

    @property
    def deployer(self) -> PagesDeployer:
        if self._deployer is None:
            self._deployer = get_deployer(self.settings)
        return self._deployer

    def supports(self, uses: str) -> bool:
        action, _, version = uses.rpartition("@")
        return version in SUPPORTED_VERSIONS.get(action, frozenset())

    def build(self, definition: Step) -> PipelineStep:
        """Build the executable step for a definition.

        Raises:
            UnknownActionError: If the action or its version is not provided
        """
        if isinstance(definition, CommandStep):
            return RunCommandStep(
                definition.run,
                shell=self.settings.runner.shell,
                name=definition.name,
                step_id=definition.id,
                working_directory=definition.working_directory,
                timeout_minutes=definition.timeout_minutes,
            )

        if not self.supports(definition.uses):
            raise UnknownActionError(
                f"Action {definition.uses!r} is not available on this runner",
                step_name=definition.display_name,
            )
        return self._factories[definition.action](definition)

    def _checkout(self, definition: ActionStep) -> PipelineStep:
        return CheckoutStep(
            self.settings.pipeline.source_dir,
            path=definition.with_.get("path", "."),
            name=definition.name,
            step_id=definition.id,
            timeout_minutes=definition.timeout_minutes,
        )

    def _index_redirect(self, definition: ActionStep) -> PipelineStep:
        return IndexRedirectStep(
            definition.with_.get("crate", self.settings.pipeline.crate_name),
            path=definition.with_.get("path", self.settings.pipeline.doc_path),
            name=definition.name,
            step_id=definition.id,
            timeout_minutes=definition.timeout_minutes,
        )

    def _upload_pages_artifact(self, definition: ActionStep) -> PipelineStep:
        return UploadPagesArtifactStep(
            definition.with_.get("path", "_site/"),
            artifact_name=definition.with_.get("name", PAGES_ARTIFACT_NAME),
            name=definition.name,
            step_id=definition.id,
            timeout_minutes=definition.timeout_minutes,
        )

    def _deploy_pages(self, definition: ActionStep) -> PipelineStep:
        return DeployPagesStep(
            self.deployer,
            artifact_name=definition.with_.get("artifact_name", PAGES_ARTIFACT_NAME),
            name=definition.name,
            step_id=definition.id,
            timeout_minutes=definition.timeout_minutes,
        )
