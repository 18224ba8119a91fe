"""Pydantic model for packaged job artifacts."""

from pathlib import Path

from pydantic import BaseModel, Field


class Artifact(BaseModel):
    """A named bundle of files produced by one job and consumed downstream."""

    name: str = Field(description="Artifact name, e.g. github-pages")
    path: Path = Field(description="Location of the packaged tarball")
    size: int = Field(default=0, description="Tarball size in bytes")
    sha256: str = Field(default="", description="Digest of the tarball")
    file_count: int = Field(default=0, description="Number of regular files packaged")

    def is_empty(self) -> bool:
        """True when the artifact is gone from disk or holds no files."""
        return self.file_count == 0 or not self.path.is_file() or self.path.stat().st_size == 0
