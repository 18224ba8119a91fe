"""Pages deployment backends."""

from pages_pipeline.config import Settings
from pages_pipeline.deploy.base import PagesDeployer
from pages_pipeline.deploy.local import LocalPagesDeployer
from pages_pipeline.deploy.s3 import S3PagesDeployer


def get_deployer(settings: Settings) -> PagesDeployer:
    """Build the deployer selected by ``settings.pages.backend``."""
    if settings.pages.backend == "s3":
        return S3PagesDeployer(settings)
    return LocalPagesDeployer(settings)


__all__ = [
    "PagesDeployer",
    "LocalPagesDeployer",
    "S3PagesDeployer",
    "get_deployer",
]
