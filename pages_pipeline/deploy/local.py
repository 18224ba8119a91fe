"""Local directory backend for pages deployments."""

import shutil
import tarfile
import tempfile
from pathlib import Path

from structlog import get_logger

from pages_pipeline.artifacts import unpack_archive
from pages_pipeline.config import Settings
from pages_pipeline.deploy.base import PagesDeployer
from pages_pipeline.errors import DeploymentError
from pages_pipeline.models import Artifact

logger = get_logger(__name__)


class LocalPagesDeployer(PagesDeployer):
    """Publishes a site into ``<local_root>/<environment>``.

    The new tree is extracted next to the live one and swapped in by rename,
    so readers never see a half-written site.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.root = Path(settings.pages.local_root)

    def site_dir(self, environment: str) -> Path:
        return self.root / environment

    def deploy(self, artifact: Artifact, environment: str) -> str:
        target = self.site_dir(environment)
        self.root.mkdir(parents=True, exist_ok=True)

        staging = None
        try:
            staging = Path(tempfile.mkdtemp(prefix=f".{environment}-", dir=self.root))
            files = unpack_archive(artifact.path, staging)
            self._swap_in(staging, target, environment)

        except (OSError, tarfile.TarError) as e:
            logger.error(
                "Failed to deploy pages locally",
                environment=environment,
                target=str(target),
                error=str(e),
            )
            raise DeploymentError(f"Failed to deploy {artifact.name} to {target}: {str(e)}") from e

        finally:
            if staging is not None and staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        page_url = self.settings.page_url(target)
        logger.info(
            "Deployed pages locally",
            environment=environment,
            target=str(target),
            file_count=len(files),
            page_url=page_url,
        )
        return page_url

    def _swap_in(self, staging: Path, target: Path, environment: str) -> None:
        """Replace ``target`` with ``staging``, restoring the live site on failure."""
        if not target.exists():
            staging.rename(target)
            return

        retired = Path(tempfile.mkdtemp(prefix=f".{environment}-old-", dir=self.root))
        try:
            target.rename(retired / "site")
            try:
                staging.rename(target)
            except OSError:
                (retired / "site").rename(target)
                raise
        finally:
            # Keep the retired copy if the live site could not be restored
            if target.exists():
                shutil.rmtree(retired, ignore_errors=True)
