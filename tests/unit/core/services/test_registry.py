from __future__ import annotations

"""
Unit tests for the Fragment Transformer Registry.

Verifies:
1. Registration, lookup and case-insensitive type tags.
2. Conversion of transformer exceptions and bad return values into failures.
3. The default wiring of built-in transformers.
"""

from pathlib import Path

import pytest

from inlinebuild.core.services.registry import TransformerRegistry, build_default_registry
from inlinebuild.domain.build_models import transform_success
from inlinebuild.domain.constants import SUPPORTED_FRAGMENT_TYPES


@pytest.fixture
def registry() -> TransformerRegistry:
    return TransformerRegistry()


def test_register_and_lookup_case_insensitive(registry: TransformerRegistry) -> None:
    def upper(path: str):
        return transform_success(path.upper())

    registry.register("TXT", upper)

    assert registry.has("txt")
    assert "Txt" in registry
    assert registry.get("txt") is upper
    assert registry.types() == ["txt"]


def test_register_rejects_invalid_input(registry: TransformerRegistry) -> None:
    with pytest.raises(ValueError):
        registry.register("", lambda p: "")
    with pytest.raises(ValueError):
        registry.register("txt", "not callable")  # type: ignore[arg-type]


def test_unregister(registry: TransformerRegistry) -> None:
    registry.register("txt", lambda p: "")

    assert registry.unregister("txt") is True
    assert registry.unregister("txt") is False
    assert 42 not in registry


def test_transform_accepts_plain_strings(registry: TransformerRegistry) -> None:
    registry.register("txt", lambda p: "inline")

    outcome = registry.transform("txt", "/x.txt")

    assert outcome.ok
    assert outcome.content == "inline"


def test_transform_converts_exceptions_to_failures(registry: TransformerRegistry) -> None:
    """TC-01: A raising transformer never propagates its exception."""
    def boom(path: str):
        raise ValueError("boom")

    registry.register("txt", boom)

    outcome = registry.transform("txt", "/x.txt")

    assert not outcome.ok
    assert outcome.error == "ValueError: boom"


def test_transform_rejects_unexpected_return_type(registry: TransformerRegistry) -> None:
    registry.register("txt", lambda p: 42)

    outcome = registry.transform("txt", "/x.txt")

    assert not outcome.ok
    assert "returned int" in outcome.error


def test_transform_unregistered_type(registry: TransformerRegistry) -> None:
    outcome = registry.transform("nope", "/x.nope")

    assert not outcome.ok
    assert "No transformer registered for type 'nope'" in outcome.error


def test_default_registry_serves_builtin_types() -> None:
    registry = build_default_registry()

    assert registry.types() == sorted(SUPPORTED_FRAGMENT_TYPES)


def test_default_registry_honours_config(tmp_path: Path) -> None:
    fragment = tmp_path / "cfg.json"
    fragment.write_text('{"a":1}', encoding="utf-8")

    registry = build_default_registry({"json_pretty_print": True})

    assert registry.transform("json", str(fragment)).content == '{\n  "a": 1\n}'
