from __future__ import annotations

"""
Output Minification Utility.

Optional post-processing of an assembled entry. Removes full-line comments
and trailing whitespace and collapses consecutive blank lines with a
stateful streaming pass. Only whole-line comments are touched so that
comment markers inside string literals or inlined URLs survive.
"""

import logging
import re
from typing import Final, Iterator

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# MINIFICATION PATTERNS
# -----------------------------------------------------------------------------

_C_STYLE_LINE_COMMENT: Final[re.Pattern] = re.compile(r"^\s*//.*$")
_HASH_LINE_COMMENT: Final[re.Pattern] = re.compile(r"^\s*#.*$")
_SINGLE_LINE_BLOCK_COMMENT: Final[re.Pattern] = re.compile(r"^\s*/\*.*\*/\s*$")

_C_STYLE_EXTENSIONS = ('.js', '.mjs', '.cjs', '.ts', '.jsx', '.tsx', '.css', '.scss', '.java', '.c', '.go')
_HASH_EXTENSIONS = ('.py', '.sh', '.bash', '.yaml', '.yml')

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def minify_code(text: str, extension: str = ".js") -> str:
    """
    Minify a full string of source code in-memory.

    Args:
        text: Assembled entry content.
        extension: Extension used to choose the comment syntax.

    Returns:
        str: Minified content terminated by a single newline (empty input
             stays empty).
    """
    if not text:
        return ""

    original_len = len(text)
    result = "".join(minify_code_stream(iter(text.splitlines(keepends=True)), extension))
    result = result.strip("\n")

    optimized_len = len(result)
    reduction = 100 - (optimized_len * 100 / original_len)
    logger.debug(f"Minified {extension}: {original_len} -> {optimized_len} chars ({reduction:.1f}% reduction)")

    return result + "\n" if result else ""


def minify_code_stream(lines: Iterator[str], extension: str = ".js") -> Iterator[str]:
    """
    Apply minification transformations to a line-based stream.

    Args:
        lines: Iterator yielding lines of code.
        extension: Target file extension for syntax rules.

    Yields:
        str: Processed lines, each terminated by a newline.
    """
    ext_lower = (extension or "").lower()
    empty_line_count = 0

    for line in lines:
        processed = line.rstrip("\r\n")

        # 1. Whole-line comment stripping (language aware)
        if ext_lower in _C_STYLE_EXTENSIONS:
            if _C_STYLE_LINE_COMMENT.match(processed) or _SINGLE_LINE_BLOCK_COMMENT.match(processed):
                processed = ""
        elif ext_lower in _HASH_EXTENSIONS:
            if _HASH_LINE_COMMENT.match(processed):
                processed = ""

        # 2. Horizontal whitespace optimization
        processed = processed.rstrip()

        # 3. Stateful newline collapsing
        if not processed:
            empty_line_count += 1
            if empty_line_count == 1:
                yield "\n"
        else:
            empty_line_count = 0
            yield processed + "\n"
