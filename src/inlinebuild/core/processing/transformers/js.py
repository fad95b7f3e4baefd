from __future__ import annotations

"""
JavaScript Fragment Transformer.

Inlines script fragments verbatim. Optional debug headers and visual
separators make the origin of each inlined block visible in the output.
"""

import os

from inlinebuild.core.processing.transformers.base import (
    FragmentTransformer,
    read_failure,
    read_fragment_text,
)
from inlinebuild.domain.build_models import TransformOutcome, transform_success


class JsTransformer(FragmentTransformer):
    """Raw text inlining for `{{js/<name>}}` placeholders."""

    def __init__(self, debug_comments: bool = False, separators: bool = False) -> None:
        self.debug_comments = debug_comments
        self.separators = separators

    def transform(self, fragment_path: str) -> TransformOutcome:
        try:
            content = read_fragment_text(fragment_path)
        except (OSError, UnicodeDecodeError) as e:
            return read_failure(fragment_path, e)

        file_name = os.path.basename(fragment_path)
        if self.debug_comments:
            content = f"// File: {file_name}\n{content}"
        if self.separators:
            content = f"\n// ===== {file_name} =====\n{content}\n"

        return transform_success(content)
