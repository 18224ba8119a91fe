"""Per-run artifact storage on the local filesystem."""

import re
from pathlib import Path

from structlog import get_logger

from pages_pipeline.artifacts.package import pack_directory
from pages_pipeline.errors import ArtifactError
from pages_pipeline.models import Artifact

logger = get_logger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class ArtifactStore:
    """Holds the artifacts of one pipeline run under ``<root>/<run_id>``.

    Jobs run in separate workspaces; the store is the only thing they share.
    """

    def __init__(self, root: Path, run_id: str):
        """Initialize the store.

        Args:
            root: Base directory for all runs
            run_id: Identifier of the run owning these artifacts
        """
        self.run_id = run_id
        self.directory = Path(root) / run_id
        self._artifacts: dict[str, Artifact] = {}

    def save(self, name: str, source: Path) -> Artifact:
        """Package ``source`` as artifact ``name``.

        Raises:
            ArtifactError: If the name is invalid, the source is missing,
                the source holds no files, or the name was already uploaded
        """
        if not _NAME_PATTERN.match(name):
            raise ArtifactError(f"Invalid artifact name: {name!r}")
        if name in self._artifacts:
            raise ArtifactError(f"Artifact {name!r} was already uploaded in run {self.run_id}")
        if not source.is_dir():
            raise ArtifactError(f"Artifact path does not exist or is not a directory: {source}")

        path = self.directory / f"{name}.tar.gz"
        size, digest, file_count = pack_directory(source, path)
        if file_count == 0:
            path.unlink(missing_ok=True)
            raise ArtifactError(f"Artifact path contains no files: {source}")

        artifact = Artifact(
            name=name,
            path=path,
            size=size,
            sha256=digest,
            file_count=file_count,
        )
        self._artifacts[name] = artifact

        logger.info(
            "Stored artifact",
            run_id=self.run_id,
            artifact=name,
            size=size,
            file_count=file_count,
            sha256=digest,
        )
        return artifact

    def get(self, name: str) -> Artifact | None:
        return self._artifacts.get(name)

    def all(self) -> list[Artifact]:
        return list(self._artifacts.values())
