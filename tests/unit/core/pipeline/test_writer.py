from __future__ import annotations

"""
Unit tests for the Artifact Output Component.

Verifies artifact naming, directory creation and that a failed write never
replaces the previous artifact.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from inlinebuild.core.pipeline.components.writer import output_path_for, write_artifact


def test_output_path_keeps_entry_extension(tmp_path: Path) -> None:
    path = output_path_for("/project/main.js", str(tmp_path / "dist"))

    assert path == str(tmp_path / "dist" / "main.js")


def test_output_path_with_extension_override(tmp_path: Path) -> None:
    path = output_path_for("/project/main.entry", str(tmp_path), ".out")

    assert path == str(tmp_path / "main.out")


def test_write_artifact_creates_directory(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "dist" / "main.js"

    size = write_artifact(str(target), "é")

    assert target.read_text(encoding="utf-8") == "é"
    assert size == 2


def test_failed_write_preserves_previous_artifact(tmp_path: Path) -> None:
    """TC-01: A failing rename leaves the old bytes and no temp file behind."""
    target = tmp_path / "main.js"
    target.write_text("old", encoding="utf-8")

    with patch("inlinebuild.infra.fs.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            write_artifact(str(target), "new")

    assert target.read_text(encoding="utf-8") == "old"
    assert os.listdir(tmp_path) == ["main.js"]
