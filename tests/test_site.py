"""Tests for the root index redirect."""

import pytest

from pages_pipeline.site import render_index_redirect, write_index_redirect

EXPECTED = (
    '<!DOCTYPE html><html><head><meta http-equiv="refresh" '
    'content="0;URL=./rahjong/index.html" /></head><body></body></html>'
)


class TestIndexRedirect:
    """Tests for render_index_redirect and write_index_redirect."""

    def test_render_matches_published_document(self):
        assert render_index_redirect("rahjong") == EXPECTED

    def test_written_file_is_byte_identical(self, tmp_path):
        """No trailing newline or BOM may sneak into the file."""
        index = write_index_redirect(tmp_path, "rahjong")

        assert index == tmp_path / "index.html"
        assert index.read_bytes() == EXPECTED.encode("ascii")

    def test_overwrites_existing_index(self, tmp_path):
        (tmp_path / "index.html").write_text("old")

        write_index_redirect(tmp_path, "rahjong")

        assert (tmp_path / "index.html").read_text() == EXPECTED

    @pytest.mark.parametrize("crate", ["", "../etc", "a/b"])
    def test_rejects_invalid_crate_names(self, crate):
        with pytest.raises(ValueError):
            render_index_redirect(crate)
