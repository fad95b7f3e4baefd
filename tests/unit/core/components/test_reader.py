from __future__ import annotations

"""
Unit tests for the Entry Reading Component.

Verifies that one read yields both the decoded text and the fingerprint of
the exact bytes, and that undecodable entries fail loudly.
"""

from pathlib import Path

import pytest

from inlinebuild.core.pipeline.components.reader import read_source
from inlinebuild.core.services.cache import compute_fingerprint


def test_read_source_returns_text_and_fingerprint(tmp_path: Path) -> None:
    path = tmp_path / "main.js"
    path.write_text("const é = 1;\n", encoding="utf-8")

    snapshot = read_source(str(path))

    assert snapshot.text == "const é = 1;\n"
    assert snapshot.fingerprint == compute_fingerprint(str(path))
    assert snapshot.path == str(path)


def test_read_source_is_strict_about_encoding(tmp_path: Path) -> None:
    path = tmp_path / "main.js"
    path.write_bytes(b"\xff\xfe\x00")

    with pytest.raises(UnicodeDecodeError):
        read_source(str(path))


def test_read_source_missing_file(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        read_source(str(tmp_path / "ghost.js"))
