from __future__ import annotations

"""
Stylesheet Fragment Transformer.

Regex based minification: comments are stripped, whitespace runs are
collapsed and the spaces around structural punctuation are removed. No
vendor prefixing or nesting expansion is performed.
"""

import logging
import re
from typing import Final

from inlinebuild.core.processing.transformers.base import (
    FragmentTransformer,
    read_failure,
    read_fragment_text,
)
from inlinebuild.domain.build_models import TransformOutcome, transform_success

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# MINIFICATION PATTERNS
# -----------------------------------------------------------------------------

_BLOCK_COMMENT_PATTERN: Final[re.Pattern] = re.compile(r"/\*.*?\*/", re.DOTALL)
_WHITESPACE_PATTERN: Final[re.Pattern] = re.compile(r"\s+")
_PUNCTUATION_PATTERN: Final[re.Pattern] = re.compile(r"\s*([{};,>])\s*")
_TRAILING_SEMICOLON_PATTERN: Final[re.Pattern] = re.compile(r";}")


def minify_css(text: str) -> str:
    """
    Minify a stylesheet in-memory.

    Args:
        text: Raw CSS.

    Returns:
        str: Compact CSS on a single line.
    """
    result = _BLOCK_COMMENT_PATTERN.sub("", text)
    result = _WHITESPACE_PATTERN.sub(" ", result)
    result = _PUNCTUATION_PATTERN.sub(r"\1", result)
    result = _TRAILING_SEMICOLON_PATTERN.sub("}", result)
    return result.strip()


class CssTransformer(FragmentTransformer):
    """Inlines `{{css/<name>}}` fragments, minified unless disabled."""

    def __init__(self, minify: bool = True) -> None:
        self.minify = minify

    def transform(self, fragment_path: str) -> TransformOutcome:
        try:
            content = read_fragment_text(fragment_path)
        except (OSError, UnicodeDecodeError) as e:
            return read_failure(fragment_path, e)

        if not self.minify:
            return transform_success(content)

        minified = minify_css(content)
        logger.debug(f"CSS {fragment_path}: {len(content)} -> {len(minified)} chars")
        return transform_success(minified)
