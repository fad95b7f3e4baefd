from __future__ import annotations

"""
Build Domain Data Models.

Defines the data structures exchanged between the orchestrator, the worker
stage, the transformers and the interface layer, together with the factory
functions that build them.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# -----------------------------------------------------------------------------
# ENTRY LIFECYCLE
# -----------------------------------------------------------------------------

class EntryStatus(str, Enum):
    """Per-entry build state machine: UNKNOWN -> CLEAN -> STALE -> BUILDING -> CLEAN|FAILED."""
    UNKNOWN = "unknown"
    CLEAN = "clean"
    STALE = "stale"
    BUILDING = "building"
    FAILED = "failed"


class BuildOutcome(str, Enum):
    """What a single `process_one` call did."""
    BUILT = "built"
    SKIPPED = "skipped"
    FAILED = "failed"

# -----------------------------------------------------------------------------
# TRANSFORMER RESULT TYPE
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class TransformOutcome:
    """
    Result of a transformer invocation: either content or a typed failure.

    Attributes:
        ok: True when `content` holds the transformed fragment.
        content: Text to inline in place of the placeholder.
        error: Failure reason when `ok` is False.
    """
    ok: bool
    content: str = ""
    error: str = ""


def transform_success(content: str) -> TransformOutcome:
    """Wrap transformed fragment content."""
    return TransformOutcome(ok=True, content=content)


def transform_failure(error: str) -> TransformOutcome:
    """Wrap a transformer rejection."""
    return TransformOutcome(ok=False, error=error)

# -----------------------------------------------------------------------------
# BUILD RESULTS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class BuildResult:
    """
    Outcome of one entry build attempt.

    Attributes:
        entry_path: Absolute path of the entry.
        outcome: Built, skipped (clean) or failed.
        output_path: Destination artifact path.
        size: Byte size of the written artifact (0 unless built).
        timestamp: Wall-clock time the attempt finished.
        error_kind: Taxonomy tag of the failure (e.g. "TransformFailure").
        error: Human readable failure reason.
        transformer_calls: Number of transformer invocations performed.
        fragments: Fragment paths the entry depends on after this attempt.
        warnings: Soft problems reported while building.
    """
    entry_path: str
    outcome: BuildOutcome
    output_path: str = ""
    size: int = 0
    timestamp: float = 0.0
    error_kind: str = ""
    error: str = ""
    transformer_calls: int = 0
    fragments: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.outcome is not BuildOutcome.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_path": self.entry_path,
            "outcome": self.outcome.value,
            "output_path": self.output_path,
            "size": self.size,
            "timestamp": self.timestamp,
            "error_kind": self.error_kind,
            "error": self.error,
            "transformer_calls": self.transformer_calls,
            "fragments": list(self.fragments),
            "warnings": list(self.warnings),
        }


def create_built_result(
        entry_path: str,
        output_path: str,
        size: int,
        transformer_calls: int,
        fragments: Tuple[str, ...] = (),
        warnings: Tuple[str, ...] = (),
) -> BuildResult:
    """
    Create the result of a successful rebuild.

    Args:
        entry_path: Absolute entry path.
        output_path: Artifact written for the entry.
        size: Number of bytes written.
        transformer_calls: Transformer invocations performed.
        fragments: Committed edge set of the entry.
        warnings: Soft warnings collected during the build.

    Returns:
        BuildResult: An immutable success result.
    """
    return BuildResult(
        entry_path=entry_path,
        outcome=BuildOutcome.BUILT,
        output_path=output_path,
        size=size,
        timestamp=time.time(),
        transformer_calls=transformer_calls,
        fragments=fragments,
        warnings=warnings,
    )


def create_skipped_result(
        entry_path: str,
        output_path: str,
        fragments: Tuple[str, ...] = (),
) -> BuildResult:
    """Create the result of an up-to-date entry that required no work."""
    return BuildResult(
        entry_path=entry_path,
        outcome=BuildOutcome.SKIPPED,
        output_path=output_path,
        timestamp=time.time(),
        fragments=fragments,
    )


def create_failed_result(
        entry_path: str,
        error_kind: str,
        error: str,
        output_path: str = "",
        transformer_calls: int = 0,
        warnings: Tuple[str, ...] = (),
) -> BuildResult:
    """
    Create the result of an aborted rebuild.

    Args:
        entry_path: Absolute entry path.
        error_kind: Taxonomy tag of the failure.
        error: Failure reason.
        output_path: Artifact that was NOT touched.
        transformer_calls: Transformer invocations performed before aborting.
        warnings: Soft warnings collected before aborting.

    Returns:
        BuildResult: An immutable failure result.
    """
    return BuildResult(
        entry_path=entry_path,
        outcome=BuildOutcome.FAILED,
        output_path=output_path,
        timestamp=time.time(),
        error_kind=error_kind,
        error=error,
        transformer_calls=transformer_calls,
        warnings=warnings,
    )


@dataclass(frozen=True)
class BatchResult:
    """
    Aggregated outcome of a `process_all` run.

    Attributes:
        entries_root: Directory that was scanned.
        output_root: Directory receiving the artifacts.
        results: One result per discovered entry, in discovery order.
        removed: Entries purged because their files disappeared.
        duration: Wall-clock seconds spent in the batch.
    """
    entries_root: str
    output_root: str
    results: List[BuildResult] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    duration: float = 0.0

    @property
    def built(self) -> List[BuildResult]:
        return [r for r in self.results if r.outcome is BuildOutcome.BUILT]

    @property
    def skipped(self) -> List[BuildResult]:
        return [r for r in self.results if r.outcome is BuildOutcome.SKIPPED]

    @property
    def failed(self) -> List[BuildResult]:
        return [r for r in self.results if r.outcome is BuildOutcome.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def result_for(self, entry_path: str) -> Optional[BuildResult]:
        for r in self.results:
            if r.entry_path == entry_path:
                return r
        return None

    def summary(self) -> Dict[str, Any]:
        """Counters and failure list consumed by the CLI report."""
        return {
            "entries_root": self.entries_root,
            "output_root": self.output_root,
            "total": len(self.results),
            "rebuilt": len(self.built),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "removed": list(self.removed),
            "duration": round(self.duration, 3),
            "failures": [
                {"entry": r.entry_path, "kind": r.error_kind, "error": r.error}
                for r in self.failed
            ],
        }
