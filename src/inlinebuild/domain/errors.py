from __future__ import annotations

"""
Build Failure Taxonomy.

Every per-entry problem the engine can hit is expressed as one of the types
below. Hard failures (`BuildFailure` subclasses) abort only the owning entry
and are converted into failed `BuildResult` objects at the orchestrator
boundary. `MissingFragmentWarning` is soft: it is logged and reported but
never aborts edge registration.
"""

from typing import Optional


class ConfigError(ValueError):
    """Raised when the configuration cannot be validated in strict mode."""


class BuildFailure(Exception):
    """
    Base class for hard, per-entry build failures.

    Attributes:
        kind: Stable taxonomy tag reported in build results.
        path: File that triggered the failure (entry, fragment or output).
    """
    kind: str = "BuildFailure"

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class ReadFailure(BuildFailure):
    """An entry or fragment could not be read during an actual build step."""
    kind = "ReadFailure"


class TransformFailure(BuildFailure):
    """A transformer rejected its fragment."""
    kind = "TransformFailure"

    def __init__(self, message: str, path: Optional[str] = None, fragment_type: str = "") -> None:
        super().__init__(message, path)
        self.fragment_type = fragment_type


class WriteFailure(BuildFailure):
    """The generated artifact could not be persisted."""
    kind = "WriteFailure"


class BuildCancelled(BuildFailure):
    """The orchestrator shut down before the artifact was written."""
    kind = "Cancelled"


class MissingFragmentWarning(UserWarning):
    """
    A placeholder references a fragment that does not resolve to a file.

    Instances are created and reported, never raised by the engine.
    """
    kind = "MissingFragmentWarning"

    def __init__(self, fragment_path: str, entry_path: str = "") -> None:
        msg = f"Fragment not found: {fragment_path}"
        if entry_path:
            msg = f"{msg} (referenced by {entry_path})"
        super().__init__(msg)
        self.fragment_path = fragment_path
        self.entry_path = entry_path
