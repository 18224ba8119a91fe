"""Deterministic tarball packaging for artifacts.

Archives are byte-for-byte reproducible: entries are sorted, timestamps
and ownership are zeroed, and the gzip header carries no name or mtime.
Two packs of the same tree therefore share a digest.
"""

import gzip
import hashlib
import tarfile
from pathlib import Path

from structlog import get_logger

logger = get_logger(__name__)

EXCLUDED_NAMES = frozenset({".git", ".github"})


def _iter_tree(source: Path) -> list[Path]:
    entries = []
    for path in source.rglob("*"):
        relative = path.relative_to(source)
        if EXCLUDED_NAMES.intersection(relative.parts):
            continue
        if path.is_dir() or path.is_file():
            entries.append(path)
    return sorted(entries, key=lambda p: p.relative_to(source).as_posix())


def _tarinfo(path: Path, arcname: str) -> tarfile.TarInfo:
    info = tarfile.TarInfo(arcname)
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    if path.is_dir():
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
    else:
        stat = path.stat()
        info.size = stat.st_size
        info.mode = 0o755 if stat.st_mode & 0o111 else 0o644
    return info


def sha256_file(path: Path) -> str:
    """Hex digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def pack_directory(source: Path, destination: Path) -> tuple[int, str, int]:
    """Pack a directory tree into a reproducible .tar.gz.

    Symlinked files are stored with their target's content, symlinked
    directories as empty directories. ``.git``/``.github`` entries are left out.

    Args:
        source: Directory to pack
        destination: Tarball path to write

    Returns:
        Tuple of (size in bytes, sha256 hex digest, regular file count)
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    file_count = 0

    with open(destination, "wb") as raw:
        with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz:
            with tarfile.open(fileobj=gz, mode="w", format=tarfile.GNU_FORMAT) as tar:
                for path in _iter_tree(source):
                    info = _tarinfo(path, path.relative_to(source).as_posix())
                    if info.isdir():
                        tar.addfile(info)
                    else:
                        with open(path, "rb") as f:
                            tar.addfile(info, f)
                        file_count += 1

    size = destination.stat().st_size
    digest = sha256_file(destination)

    logger.debug(
        "Packed directory",
        source=str(source),
        destination=str(destination),
        size=size,
        file_count=file_count,
    )
    return size, digest, file_count


def unpack_archive(archive: Path, destination: Path) -> list[str]:
    """Extract a tarball produced by pack_directory.

    Returns:
        Sorted relative paths of the regular files extracted
    """
    destination.mkdir(parents=True, exist_ok=True)
    with tarfile.open(archive, mode="r:gz") as tar:
        members = tar.getmembers()
        tar.extractall(destination, filter="data")
    return sorted(m.name for m in members if m.isfile())
