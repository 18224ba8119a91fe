"""Artifact packaging and per-run storage."""

from pages_pipeline.artifacts.package import pack_directory, unpack_archive
from pages_pipeline.artifacts.store import ArtifactStore

__all__ = [
    "ArtifactStore",
    "pack_directory",
    "unpack_archive",
]
