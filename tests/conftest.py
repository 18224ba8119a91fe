import os
import stat
from pathlib import Path

import pytest

from pages_pipeline.config.settings import (
    PagesSettings,
    PipelineSettings,
    RunnerSettings,
    Settings,
)

CRATE = "rahjong"

FAKE_CARGO = """#!/bin/sh
# Stand-in for `cargo doc --no-deps`: emits a minimal rustdoc tree
set -e
mkdir -p target/doc/{crate}
printf '<html><body>{crate} docs</body></html>' > target/doc/{crate}/index.html
printf 'searchIndex = {{}};' > target/doc/search-index.js
"""

FAKE_RUSTUP = """#!/bin/sh
exit 0
"""


def _write_executable(path: Path, content: str) -> None:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def source_tree(tmp_path):
    """A small crate checkout, including VCS metadata and stale build output."""
    root = tmp_path / "source"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text(f'[package]\nname = "{CRATE}"\nversion = "0.1.0"\n')
    (root / "src" / "lib.rs").write_text("//! Mahjong tiles.\npub mod cards;\n")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    (root / "target" / "doc").mkdir(parents=True)
    (root / "target" / "doc" / "stale.html").write_text("stale")
    return root


@pytest.fixture
def fake_toolchain(tmp_path, monkeypatch):
    """Put fake `rustup` and `cargo` executables first on PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    _write_executable(bin_dir / "cargo", FAKE_CARGO.format(crate=CRATE))
    _write_executable(bin_dir / "rustup", FAKE_RUSTUP)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return bin_dir


@pytest.fixture
def broken_toolchain(fake_toolchain):
    """Replace the fake `cargo` with one that fails the way a compile error does."""
    _write_executable(fake_toolchain / "cargo", "#!/bin/sh\necho 'error: could not compile' >&2\nexit 101\n")
    return fake_toolchain


@pytest.fixture
def test_settings(tmp_path, source_tree):
    """Settings isolated under tmp_path with the local pages backend."""
    return Settings(
        pipeline=PipelineSettings(source_dir=source_tree, crate_name=CRATE),
        runner=RunnerSettings(workdir=tmp_path / "work", shell="sh"),
        pages=PagesSettings(backend="local", local_root=tmp_path / "sites"),
    )
