from __future__ import annotations

"""
Placeholder Tokenizer.

Scans entry text for fragment references and performs their substitution.
Two token forms are recognized:

    {{<type>/<name>}}            bare form
    /* {{<type>/<name>}} */      comment-wrapped form (any inner whitespace)

Precedence rule: when an entry contains both forms for the same
(type, name), only the comment-wrapped occurrences are substituted and the
bare ones are left untouched. The rule is applied explicitly by
`select_substitutions`, not left to regex alternation order.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

# -----------------------------------------------------------------------------
# TOKEN SYNTAX
# -----------------------------------------------------------------------------

_BARE_TOKEN_RX: re.Pattern = re.compile(
    r"\{\{(?P<type>[A-Za-z0-9_\-]+)/(?P<name>[^{}\s]+)\}\}"
)
_COMMENT_OPEN = "/*"
_COMMENT_CLOSE = "*/"

FragmentKey = Tuple[str, str]


@dataclass(frozen=True)
class PlaceholderToken:
    """
    One placeholder occurrence.

    Attributes:
        type: Fragment type tag (also the fragment file extension).
        name: Fragment base name.
        span: (start, end) offsets of the text to replace. For wrapped
              tokens the span covers the comment delimiters.
        wrapped: True for the comment-wrapped form.
    """
    type: str
    name: str
    span: Tuple[int, int]
    wrapped: bool = False

    @property
    def key(self) -> FragmentKey:
        return self.type, self.name

    @property
    def text(self) -> str:
        return f"{{{{{self.type}/{self.name}}}}}"


# -----------------------------------------------------------------------------
# SCANNING
# -----------------------------------------------------------------------------

def iter_tokens(content: str) -> Iterator[PlaceholderToken]:
    """
    Lazily yield every placeholder of `content` in document order.

    Args:
        content: Entry text.

    Yields:
        PlaceholderToken: Bare or comment-wrapped occurrences.
    """
    for match in _BARE_TOKEN_RX.finditer(content):
        start, end = match.span()
        wrapper = _comment_wrapper_span(content, start, end)
        if wrapper is not None:
            start, end = wrapper
        yield PlaceholderToken(
            type=match.group("type"),
            name=match.group("name"),
            span=(start, end),
            wrapped=wrapper is not None,
        )


class TokenScan:
    """
    Restartable view over the placeholders of a text.

    Each iteration rescans the content lazily; nothing is materialized
    until a caller asks for it.
    """

    def __init__(self, content: str) -> None:
        self._content = content

    def __iter__(self) -> Iterator[PlaceholderToken]:
        return iter_tokens(self._content)

    def keys(self) -> List[FragmentKey]:
        """Distinct (type, name) pairs in order of first appearance."""
        return distinct_keys(self)


def extract_tokens(content: str) -> TokenScan:
    """Return a lazy, restartable sequence of placeholder tokens."""
    return TokenScan(content)


def distinct_keys(tokens: Iterable[PlaceholderToken]) -> List[FragmentKey]:
    """Return each (type, name) once, in order of first appearance."""
    seen: Set[FragmentKey] = set()
    ordered: List[FragmentKey] = []
    for token in tokens:
        if token.key not in seen:
            seen.add(token.key)
            ordered.append(token.key)
    return ordered


# -----------------------------------------------------------------------------
# SUBSTITUTION
# -----------------------------------------------------------------------------

def select_substitutions(tokens: Iterable[PlaceholderToken]) -> List[PlaceholderToken]:
    """
    Apply the comment-over-bare precedence rule.

    For every (type, name) that has at least one comment-wrapped occurrence,
    only the wrapped occurrences are kept. Otherwise all bare occurrences
    are kept.

    Args:
        tokens: Tokens of a single entry.

    Returns:
        List[PlaceholderToken]: Tokens to substitute, in document order.
    """
    all_tokens = list(tokens)
    wrapped_keys = {t.key for t in all_tokens if t.wrapped}
    return [
        t for t in all_tokens
        if t.wrapped or t.key not in wrapped_keys
    ]


def substitute(
        content: str,
        tokens: Iterable[PlaceholderToken],
        replacements: Dict[FragmentKey, str],
) -> str:
    """
    Replace token spans with their fragment content in a single pass.

    Inserted content is never rescanned, so a fragment that itself contains
    placeholder-like text is inlined verbatim. Tokens with no entry in
    `replacements` are left as they are.

    Args:
        content: Original entry text.
        tokens: Tokens to substitute (see `select_substitutions`).
        replacements: Transformed content per (type, name).

    Returns:
        str: The assembled text.
    """
    pieces: List[str] = []
    cursor = 0
    for token in sorted(tokens, key=lambda t: t.span[0]):
        start, end = token.span
        if start < cursor or token.key not in replacements:
            continue
        pieces.append(content[cursor:start])
        pieces.append(replacements[token.key])
        cursor = end
    pieces.append(content[cursor:])
    return "".join(pieces)


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _comment_wrapper_span(content: str, start: int, end: int) -> Optional[Tuple[int, int]]:
    """Return the span of `/* ... */` surrounding a token, if present."""
    i = start
    while i > 0 and content[i - 1].isspace():
        i -= 1
    if i < 2 or content[i - 2:i] != _COMMENT_OPEN:
        return None

    j = end
    n = len(content)
    while j < n and content[j].isspace():
        j += 1
    if content[j:j + 2] != _COMMENT_CLOSE:
        return None

    return i - 2, j + 2
