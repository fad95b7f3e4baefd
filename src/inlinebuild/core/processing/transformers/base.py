from __future__ import annotations

"""
Base Definitions for Fragment Transformers.

Provides the abstract interface shared by the built-in transformers and the
text/bytes reading helpers they use. A transformer receives the path of a
fragment file and returns a `TransformOutcome`.
"""

import os
from abc import ABC, abstractmethod

from inlinebuild.domain.build_models import TransformOutcome, transform_failure


class FragmentTransformer(ABC):
    """
    Abstract base class for type-specific fragment transformations.

    Instances are callables so they can be registered directly in a
    `TransformerRegistry` next to plain functions.
    """

    def __call__(self, fragment_path: str) -> TransformOutcome:
        return self.transform(fragment_path)

    @abstractmethod
    def transform(self, fragment_path: str) -> TransformOutcome:
        """
        Produce the text to inline in place of the fragment's placeholder.

        Args:
            fragment_path: Absolute path to the fragment file.

        Returns:
            TransformOutcome: Success with content, or failure with reason.
        """
        pass


def read_fragment_text(fragment_path: str) -> str:
    """
    Read a fragment as UTF-8 text.

    Unlike entry scanning, fragments are decoded strictly: a fragment with
    invalid bytes is a transform failure, not silently patched content.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the content is not valid UTF-8.
    """
    with open(fragment_path, "r", encoding="utf-8") as f:
        return f.read()


def read_fragment_bytes(fragment_path: str) -> bytes:
    with open(fragment_path, "rb") as f:
        return f.read()


def read_failure(fragment_path: str, error: Exception) -> TransformOutcome:
    """Failure outcome for a fragment that could not be loaded."""
    return transform_failure(f"Cannot read {os.path.basename(fragment_path)}: {error}")
