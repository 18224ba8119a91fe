"""Interface shared by pages deployment backends."""

from abc import ABC, abstractmethod

from pages_pipeline.models import Artifact


class PagesDeployer(ABC):
    """Publishes a packaged site and reports where it can be reached."""

    @abstractmethod
    def deploy(self, artifact: Artifact, environment: str) -> str:
        """Publish ``artifact`` to ``environment``.

        Returns:
            Public URL of the deployed site

        Raises:
            DeploymentError: If publishing fails
        """
        pass
