from __future__ import annotations

"""
Entry Assembly Worker.

Encapsulates the in-memory part of a single entry build: token extraction,
fragment resolution, transformation (optionally memoized in the content
cache) and substitution. Nothing here touches the output directory or the
dependency graph; the orchestrator commits state only after the assembled
text has been written.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from inlinebuild.core.processing.placeholders import (
    FragmentKey,
    distinct_keys,
    extract_tokens,
    select_substitutions,
    substitute,
)
from inlinebuild.core.services.cache import ContentCache, compute_fingerprint
from inlinebuild.core.services.dependency_graph import resolve_fragment_path
from inlinebuild.core.services.registry import TransformerRegistry
from inlinebuild.domain.constants import TRANSFORM_RECORD_PREFIX
from inlinebuild.domain.errors import MissingFragmentWarning, ReadFailure, TransformFailure
from inlinebuild.infra.fs import is_within

logger = logging.getLogger(__name__)


@dataclass
class RenderedEntry:
    """
    In-memory result of assembling one entry.

    Attributes:
        content: Entry text with every chosen placeholder substituted.
        fragments: Fingerprint of each resolved fragment, taken before its
                   transformation, keyed by absolute path.
        transformer_calls: Number of transformer invocations performed.
        warnings: Soft problems (missing fragments in lenient mode).
        missing: Absolute paths of referenced fragments that do not exist.
    """
    content: str
    fragments: Dict[str, str] = field(default_factory=dict)
    transformer_calls: int = 0
    warnings: List[MissingFragmentWarning] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_entry(
        entry_path: str,
        text: str,
        fragments_root: str,
        registry: TransformerRegistry,
        cache: Optional[ContentCache] = None,
        strict_fragments: bool = True,
        memoize_transforms: bool = False,
) -> RenderedEntry:
    """
    Assemble an entry from its text.

    Distinct fragments are transformed once each, in the order their token
    first appears; every chosen occurrence is then substituted in a single
    pass. Tokens whose type has no registered transformer are left as-is
    and create no dependency.

    Args:
        entry_path: Absolute entry path (for diagnostics).
        text: Entry content.
        fragments_root: Root of the `<type>/<name>.<type>` fragment tree.
        registry: Transformer lookup.
        cache: Content cache used for memoized transforms.
        strict_fragments: If True a missing fragment aborts the entry.
        memoize_transforms: Reuse transform output recorded for the same
                            fragment fingerprint.

    Returns:
        RenderedEntry: Assembled content and dependency information.

    Raises:
        ReadFailure: A fragment is missing or outside the fragment tree
                     (strict mode), or unreadable.
        TransformFailure: A transformer rejected its fragment.
    """
    chosen = select_substitutions(extract_tokens(text))
    replacements: Dict[FragmentKey, str] = {}
    rendered = RenderedEntry(content=text)

    for fragment_type, name in distinct_keys(chosen):
        if not registry.has(fragment_type):
            logger.debug(f"Worker: No transformer for '{fragment_type}' in {entry_path}; token kept.")
            continue

        fragment_path = os.path.abspath(resolve_fragment_path(fragment_type, name, fragments_root))

        if not is_within(os.path.join(fragments_root, fragment_type), fragment_path):
            # Escaping references are never recorded as awaited fragments
            if strict_fragments:
                raise ReadFailure(
                    f"Fragment reference {{{{{fragment_type}/{name}}}}} escapes the fragment tree",
                    path=entry_path,
                )
            warning = MissingFragmentWarning(fragment_path, entry_path)
            logger.warning(f"Worker: Reference outside the fragment tree ignored. {warning}")
            rendered.warnings.append(warning)
            continue

        if not os.path.isfile(fragment_path):
            if strict_fragments:
                raise ReadFailure(
                    f"Missing fragment {{{{{fragment_type}/{name}}}}}: {fragment_path}",
                    path=fragment_path,
                )
            warning = MissingFragmentWarning(fragment_path, entry_path)
            logger.warning(f"Worker: {warning}")
            rendered.warnings.append(warning)
            rendered.missing.append(fragment_path)
            continue

        try:
            fingerprint = compute_fingerprint(fragment_path)
        except OSError as e:
            raise ReadFailure(f"Cannot read fragment {fragment_path}: {e}", path=fragment_path) from e

        content, invoked = _transform_fragment(
            fragment_type, fragment_path, fingerprint, registry,
            cache if memoize_transforms else None,
        )
        rendered.transformer_calls += invoked
        rendered.fragments[fragment_path] = fingerprint
        replacements[(fragment_type, name)] = content

    rendered.content = substitute(text, chosen, replacements)
    return rendered


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _transform_fragment(
        fragment_type: str,
        fragment_path: str,
        fingerprint: str,
        registry: TransformerRegistry,
        cache: Optional[ContentCache],
) -> Tuple[str, int]:
    """Return (content, transformer invocations) for one fragment."""
    op_key = f"{TRANSFORM_RECORD_PREFIX}{fragment_type}"

    if cache is not None:
        cached = cache.get_record(fragment_path, op_key, fingerprint=fingerprint)
        if cached is not None:
            logger.debug(f"Worker: Transform cache hit for {fragment_path}")
            return cached, 0

    outcome = registry.transform(fragment_type, fragment_path)
    if not outcome.ok:
        raise TransformFailure(outcome.error, path=fragment_path, fragment_type=fragment_type)

    if cache is not None:
        cache.set_record(fragment_path, op_key, outcome.content, fingerprint=fingerprint)
    return outcome.content, 1
