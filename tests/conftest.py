from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures describing a throwaway project layout (entries,
   fragment tree and output directory) plus helpers to populate it.
"""

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def layout(tmp_path: Path) -> Dict[str, Path]:
    """
    Create an empty project layout.

    Structure:
    /project          (entries)
      /src            (fragments_root)
      /dist           (output_root)

    Returns:
        Dict[str, Path]: Keys `working_dir`, `entries_root`, `fragments_root`,
                         `output_root`.
    """
    project = tmp_path / "project"
    (project / "src").mkdir(parents=True)
    (project / "dist").mkdir()
    return {
        "working_dir": project,
        "entries_root": project,
        "fragments_root": project / "src",
        "output_root": project / "dist",
    }


@pytest.fixture
def make_fragment(layout: Dict[str, Path]) -> Callable[[str, str, Any], Path]:
    """
    Factory writing `<fragments_root>/<type>/<name>.<type>`.

    Text content is written as UTF-8; bytes are written verbatim.
    """

    def _make(fragment_type: str, name: str, content: Any) -> Path:
        path = layout["fragments_root"] / fragment_type / f"{name}.{fragment_type}"
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _make


@pytest.fixture
def make_entry(layout: Dict[str, Path]) -> Callable[[str, str], Path]:
    """Factory writing an entry file directly in the entries root."""

    def _make(file_name: str, content: str) -> Path:
        path = layout["entries_root"] / file_name
        path.write_text(content, encoding="utf-8")
        return path

    return _make


@pytest.fixture
def mock_config_dict(layout: Dict[str, Path]) -> Dict[str, Any]:
    """
    Return a valid, complete configuration dictionary bound to `layout`.

    Reflects the structure defined in 'inlinebuild.domain.config'.
    """
    return {
        # Layout
        "working_dir": str(layout["working_dir"]),
        "entries_dir": "",
        "fragments_dir": "src",
        "output_dir": "dist",
        "entry_extensions": [".js"],
        "output_extension": "",

        # Engine
        "max_workers": 2,
        "strict_fragments": True,
        "memoize_transforms": True,
        "minify_output": False,

        # Watch mode
        "debounce_ms": 100,
        "poll_interval": 0.5,

        # Transformers
        "css_minify": True,
        "html_minify": True,
        "html_remove_comments": True,
        "svg_remove_metadata": True,
        "json_pretty_print": False,
        "js_debug_comments": False,
        "js_separators": False,
        "jpg_mime_type": "image/jpeg",
    }
