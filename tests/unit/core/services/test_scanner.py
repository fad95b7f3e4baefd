from __future__ import annotations

"""
Unit tests for the File Discovery Service.

Verifies:
1. Flat entry enumeration filtered by extension.
2. Exclusion of hidden files, subdirectories and atomic write artifacts.
3. Fragment tree walking and fragment classification.
"""

import os
from pathlib import Path

from inlinebuild.core.services.scanner import (
    classify_fragment,
    list_entry_files,
    yield_fragment_files,
)


def test_list_entry_files_filters_and_sorts(tmp_path: Path) -> None:
    for name in ("b.js", "a.JS", "notes.md", ".hidden.js", ".inlinebuild-x.tmp"):
        (tmp_path / name).write_text("", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "deep.js").write_text("", encoding="utf-8")

    entries = list_entry_files(str(tmp_path), [".js"])

    assert entries == [str(tmp_path / "a.JS"), str(tmp_path / "b.js")]


def test_list_entry_files_missing_directory(tmp_path: Path) -> None:
    assert list_entry_files(str(tmp_path / "ghost"), [".js"]) == []


def test_yield_fragment_files_walks_tree(tmp_path: Path) -> None:
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "a.css").write_text("", encoding="utf-8")
    (tmp_path / "svg" / "icons").mkdir(parents=True)
    (tmp_path / "svg" / "icons" / "x.svg").write_text("", encoding="utf-8")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("", encoding="utf-8")

    found = list(yield_fragment_files(str(tmp_path)))

    assert found == [
        str(tmp_path / "css" / "a.css"),
        str(tmp_path / "svg" / "icons" / "x.svg"),
    ]


def test_classify_fragment(tmp_path: Path) -> None:
    root = str(tmp_path)

    assert classify_fragment(os.path.join(root, "css", "theme.css"), root) == ("css", "theme")
    assert classify_fragment(os.path.join(root, "svg", "icons", "x.svg"), root) == ("svg", "icons/x")
    assert classify_fragment(os.path.join(root, "css", "theme.scss"), root) is None
    assert classify_fragment(os.path.join(root, "loose.css"), root) is None
    assert classify_fragment(os.path.join(str(tmp_path.parent), "css", "a.css"), root) is None
