from __future__ import annotations

"""
Markup Fragment Transformers (HTML and SVG).

Both formats are compacted with the same regex primitives: comments are
removed and the whitespace between tags is dropped. SVG additionally loses
its XML prolog, doctype and `<metadata>` blocks so the result can be
embedded directly in a document or a string literal.
"""

import re
from typing import Final

from inlinebuild.core.processing.transformers.base import (
    FragmentTransformer,
    read_failure,
    read_fragment_text,
)
from inlinebuild.domain.build_models import TransformOutcome, transform_success

# -----------------------------------------------------------------------------
# MARKUP PATTERNS
# -----------------------------------------------------------------------------

_COMMENT_PATTERN: Final[re.Pattern] = re.compile(r"<!--.*?-->", re.DOTALL)
_INTER_TAG_WHITESPACE_PATTERN: Final[re.Pattern] = re.compile(r">\s+<")
_WHITESPACE_PATTERN: Final[re.Pattern] = re.compile(r"\s+")

_XML_PROLOG_PATTERN: Final[re.Pattern] = re.compile(r"<\?xml.*?\?>", re.DOTALL)
_DOCTYPE_PATTERN: Final[re.Pattern] = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_METADATA_PATTERN: Final[re.Pattern] = re.compile(
    r"<metadata\b.*?</metadata>|<metadata\b[^>]*/>",
    re.DOTALL | re.IGNORECASE,
)


def collapse_markup(text: str) -> str:
    """Drop inter-tag whitespace and collapse remaining runs to one space."""
    result = _INTER_TAG_WHITESPACE_PATTERN.sub("><", text)
    result = _WHITESPACE_PATTERN.sub(" ", result)
    return result.strip()


def strip_markup_comments(text: str) -> str:
    return _COMMENT_PATTERN.sub("", text)


class HtmlTransformer(FragmentTransformer):
    """Inlines `{{html/<name>}}` fragments."""

    def __init__(self, minify: bool = True, remove_comments: bool = True) -> None:
        self.minify = minify
        self.remove_comments = remove_comments

    def transform(self, fragment_path: str) -> TransformOutcome:
        try:
            content = read_fragment_text(fragment_path)
        except (OSError, UnicodeDecodeError) as e:
            return read_failure(fragment_path, e)

        if self.remove_comments:
            content = strip_markup_comments(content)
        if self.minify:
            content = collapse_markup(content)
        return transform_success(content)


class SvgTransformer(FragmentTransformer):
    """Inlines `{{svg/<name>}}` fragments as a compact `<svg>` element."""

    def __init__(self, remove_metadata: bool = True) -> None:
        self.remove_metadata = remove_metadata

    def transform(self, fragment_path: str) -> TransformOutcome:
        try:
            content = read_fragment_text(fragment_path)
        except (OSError, UnicodeDecodeError) as e:
            return read_failure(fragment_path, e)

        content = _XML_PROLOG_PATTERN.sub("", content)
        content = _DOCTYPE_PATTERN.sub("", content)
        content = strip_markup_comments(content)
        if self.remove_metadata:
            content = _METADATA_PATTERN.sub("", content)
        return transform_success(collapse_markup(content))
