from __future__ import annotations

"""
Unit tests for the Configuration Validator.

Verifies:
1. Fallback to defaults and warnings on invalid input (lenient mode).
2. ConfigError in strict mode.
3. Normalization of extensions and directory layout resolution.
4. Layout pre-flight checks.
"""

import os
from pathlib import Path

import pytest

from inlinebuild.core.pipeline.stages.validator import (
    prepare_layout,
    resolve_layout,
    validate_config,
)
from inlinebuild.domain.config import get_default_config
from inlinebuild.domain.errors import ConfigError


def test_validate_non_dict_returns_defaults() -> None:
    cfg, warnings = validate_config("not a dict")

    assert cfg["fragments_dir"] == get_default_config()["fragments_dir"]
    assert warnings


def test_validate_fills_missing_keys() -> None:
    cfg, warnings = validate_config({"max_workers": 3})

    assert cfg["max_workers"] == 3
    assert cfg["strict_fragments"] is True
    assert cfg["entry_extensions"] == [".js"]
    assert warnings == []


def test_unknown_key_is_ignored_or_rejected() -> None:
    cfg, warnings = validate_config({"bogus": 1})
    assert "bogus" not in cfg
    assert any("bogus" in w for w in warnings)

    with pytest.raises(ConfigError):
        validate_config({"bogus": 1}, strict=True)


def test_boolean_coercion_in_lenient_mode() -> None:
    cfg, warnings = validate_config({"strict_fragments": "no", "minify_output": 1})

    assert cfg["strict_fragments"] is False
    assert cfg["minify_output"] is True
    assert len(warnings) == 2


def test_invalid_values_fall_back() -> None:
    cfg, warnings = validate_config({"max_workers": -2, "poll_interval": 0, "debounce_ms": "soon"})

    defaults = get_default_config()
    assert cfg["max_workers"] == defaults["max_workers"]
    assert cfg["poll_interval"] == defaults["poll_interval"]
    assert cfg["debounce_ms"] == defaults["debounce_ms"]
    assert len(warnings) == 3


def test_strict_mode_rejects_bad_types() -> None:
    with pytest.raises(ConfigError):
        validate_config({"max_workers": "2"}, strict=True)


def test_extensions_are_normalized() -> None:
    cfg, warnings = validate_config({"entry_extensions": "JS, .Entry, js", "output_extension": "out"})

    assert cfg["entry_extensions"] == [".js", ".entry"]
    assert cfg["output_extension"] == ".out"
    assert warnings


def test_resolve_layout(tmp_path: Path) -> None:
    cfg, _ = validate_config({
        "working_dir": str(tmp_path),
        "entries_dir": "entries",
        "fragments_dir": "frags",
        "output_dir": str(tmp_path / "out"),
    })

    layout = resolve_layout(cfg)

    assert layout["working_dir"] == str(tmp_path)
    assert layout["entries_root"] == os.path.join(str(tmp_path), "entries")
    assert layout["fragments_root"] == os.path.join(str(tmp_path), "frags")
    assert layout["output_root"] == str(tmp_path / "out")


def test_entries_root_defaults_to_working_dir(tmp_path: Path) -> None:
    cfg, _ = validate_config({"working_dir": str(tmp_path)})

    assert resolve_layout(cfg)["entries_root"] == str(tmp_path)


def test_prepare_layout_creates_fragment_and_output_dirs(tmp_path: Path) -> None:
    cfg, _ = validate_config({"working_dir": str(tmp_path)})
    layout = resolve_layout(cfg)

    prepare_layout(layout)

    assert os.path.isdir(layout["fragments_root"])
    assert os.path.isdir(layout["output_root"])


def test_prepare_layout_reports_missing_working_dir(tmp_path: Path) -> None:
    cfg, _ = validate_config({"working_dir": str(tmp_path / "ghost")})

    with pytest.raises(ConfigError) as exc:
        prepare_layout(resolve_layout(cfg))

    assert "does not exist" in str(exc.value)
    assert not (tmp_path / "ghost").exists()
