"""Root index document for published documentation sites."""

from pathlib import Path

INDEX_FILENAME = "index.html"

_REDIRECT_TEMPLATE = (
    '<!DOCTYPE html><html><head><meta http-equiv="refresh" '
    'content="0;URL=./{crate}/index.html" /></head><body></body></html>'
)


def render_index_redirect(crate_name: str) -> str:
    """Return the index page that immediately redirects to ``./<crate>/index.html``."""
    if not crate_name or "/" in crate_name:
        raise ValueError(f"Invalid crate name: {crate_name!r}")
    return _REDIRECT_TEMPLATE.format(crate=crate_name)


def write_index_redirect(doc_dir: Path, crate_name: str) -> Path:
    """Write the redirect index into ``doc_dir``, replacing any existing one.

    Returns:
        Path of the written index file
    """
    target = doc_dir / INDEX_FILENAME
    target.write_bytes(render_index_redirect(crate_name).encode("utf-8"))
    return target
