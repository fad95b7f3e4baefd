from __future__ import annotations

"""
JSON Fragment Transformer.

Parses the fragment to validate it and re-serializes it either compactly
(default) or pretty-printed with a two-space indent. Invalid JSON is a
transform failure.
"""

import json

from inlinebuild.core.processing.transformers.base import (
    FragmentTransformer,
    read_failure,
    read_fragment_text,
)
from inlinebuild.domain.build_models import (
    TransformOutcome,
    transform_failure,
    transform_success,
)


class JsonTransformer(FragmentTransformer):
    """Inlines `{{json/<name>}}` fragments as normalized JSON text."""

    def __init__(self, pretty: bool = False) -> None:
        self.pretty = pretty

    def transform(self, fragment_path: str) -> TransformOutcome:
        try:
            raw = read_fragment_text(fragment_path)
        except (OSError, UnicodeDecodeError) as e:
            return read_failure(fragment_path, e)

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            return transform_failure(f"Invalid JSON syntax in {fragment_path}: {e}")

        if self.pretty:
            return transform_success(json.dumps(parsed, indent=2, ensure_ascii=False))
        return transform_success(json.dumps(parsed, separators=(",", ":"), ensure_ascii=False))
