from __future__ import annotations

"""
Unit tests for Build Domain Models and the failure taxonomy.

Verifies:
1. Result factories and their immutability.
2. Batch aggregation and summary rendering.
3. Failure kinds and warning messages.
"""

import dataclasses

import pytest

from inlinebuild.domain.build_models import (
    BatchResult,
    BuildOutcome,
    EntryStatus,
    create_built_result,
    create_failed_result,
    create_skipped_result,
    transform_failure,
    transform_success,
)
from inlinebuild.domain.errors import (
    BuildCancelled,
    BuildFailure,
    MissingFragmentWarning,
    ReadFailure,
    TransformFailure,
    WriteFailure,
)


def test_transform_outcome_factories() -> None:
    assert transform_success("x").ok is True
    failure = transform_failure("bad")
    assert failure.ok is False
    assert failure.error == "bad"


def test_built_result_is_frozen() -> None:
    result = create_built_result("/e.js", "/dist/e.js", 10, 2, fragments=("/f.css",))

    assert result.outcome is BuildOutcome.BUILT
    assert result.ok
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.size = 0  # type: ignore[misc]


def test_result_to_dict_is_json_friendly() -> None:
    result = create_failed_result("/e.js", "ReadFailure", "gone", warnings=("w",))

    data = result.to_dict()

    assert data["outcome"] == "failed"
    assert data["error_kind"] == "ReadFailure"
    assert data["warnings"] == ["w"]
    assert data["fragments"] == []


def test_batch_result_partitions_and_summary() -> None:
    built = create_built_result("/a.js", "/dist/a.js", 3, 1)
    skipped = create_skipped_result("/b.js", "/dist/b.js")
    failed = create_failed_result("/c.js", "TransformFailure", "nope")

    batch = BatchResult("/", "/dist", [built, skipped, failed], removed=["/d.js"], duration=0.12345)
    summary = batch.summary()

    assert batch.built == [built]
    assert batch.skipped == [skipped]
    assert batch.failed == [failed]
    assert batch.ok is False
    assert batch.result_for("/b.js") is skipped
    assert batch.result_for("/zzz.js") is None
    assert summary["total"] == 3
    assert summary["rebuilt"] == 1
    assert summary["duration"] == 0.123
    assert summary["failures"] == [{"entry": "/c.js", "kind": "TransformFailure", "error": "nope"}]


def test_entry_status_values() -> None:
    assert [s.value for s in EntryStatus] == ["unknown", "clean", "stale", "building", "failed"]


@pytest.mark.parametrize("exc_type, kind", [
    (ReadFailure, "ReadFailure"),
    (TransformFailure, "TransformFailure"),
    (WriteFailure, "WriteFailure"),
    (BuildCancelled, "Cancelled"),
])
def test_failure_kinds(exc_type, kind) -> None:
    err = exc_type("message", path="/x")

    assert isinstance(err, BuildFailure)
    assert err.kind == kind
    assert err.message == "message"
    assert err.path == "/x"


def test_missing_fragment_warning_message() -> None:
    warning = MissingFragmentWarning("/src/css/a.css", "/main.js")

    assert str(warning) == "Fragment not found: /src/css/a.css (referenced by /main.js)"
    assert warning.kind == "MissingFragmentWarning"
