from __future__ import annotations

"""
Entry/Fragment Dependency Graph.

Maintains the bidirectional relation between entries and the fragments their
placeholders reference. The forward map stores, per entry, the fingerprint of
every fragment as it was when the entry was last built successfully; the
reverse map answers "which entries must rebuild because fragment X changed?".

Both maps are mutated together under a single re-entrant lock, so they are
always mutually consistent: a fragment appears in the reverse map iff at
least one tracked entry references it.
"""

import logging
import os
import threading
from typing import Callable, Dict, Iterable, List, Optional, Set

from inlinebuild.core.processing.placeholders import TokenScan
from inlinebuild.core.processing.placeholders import extract_tokens as _scan_tokens
from inlinebuild.core.services.cache import compute_fingerprint
from inlinebuild.domain.errors import MissingFragmentWarning

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PATH RESOLUTION
# -----------------------------------------------------------------------------

def resolve_fragment_path(fragment_type: str, name: str, fragments_root: str) -> str:
    """
    Map a placeholder reference to its file location.

    `{{css/theme}}` resolves to `<fragments_root>/css/theme.css`. This is a
    pure path join; existence and containment under `<fragments_root>/<type>`
    are checked by the callers.
    """
    return os.path.join(fragments_root, fragment_type, f"{name}.{fragment_type}")


# -----------------------------------------------------------------------------
# GRAPH SERVICE
# -----------------------------------------------------------------------------

class DependencyGraph:
    """
    Thread-safe entry -> fragment edge store.

    Args:
        fingerprinter: Callable returning the content digest of a path. It is
                       used to snapshot fragments at registration time and to
                       compare them during staleness checks.
    """

    def __init__(self, fingerprinter: Callable[[str], str] = compute_fingerprint) -> None:
        self._fingerprinter = fingerprinter
        self._forward: Dict[str, Dict[str, str]] = {}
        self._reverse: Dict[str, Set[str]] = {}
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Token analysis
    # -------------------------------------------------------------------------

    @staticmethod
    def extract_tokens(content: str) -> TokenScan:
        """Lazy, restartable sequence of the placeholders found in `content`."""
        return _scan_tokens(content)

    @staticmethod
    def resolve_fragment_path(fragment_type: str, name: str, fragments_root: str) -> str:
        return resolve_fragment_path(fragment_type, name, fragments_root)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def register_edges(
            self,
            entry: str,
            fragments: Iterable[str],
            fingerprints: Optional[Dict[str, str]] = None,
    ) -> List[MissingFragmentWarning]:
        """
        Replace the complete edge set of `entry`.

        Old edges are removed before the new ones are added, in a single
        critical section. Fragments that do not exist on disk are dropped and
        reported; registration itself never fails.

        Args:
            entry: Entry path.
            fragments: Fragment paths referenced by the entry.
            fingerprints: Fingerprints already observed by the caller, keyed
                          by absolute fragment path. Missing values are
                          computed here.

        Returns:
            List[MissingFragmentWarning]: One warning per dropped fragment.
        """
        entry_key = os.path.abspath(entry)
        known = {os.path.abspath(k): v for k, v in (fingerprints or {}).items()}

        snapshot: Dict[str, str] = {}
        warnings: List[MissingFragmentWarning] = []

        for fragment in fragments:
            path = os.path.abspath(fragment)
            if path in snapshot:
                continue

            fingerprint: Optional[str] = None
            if os.path.isfile(path):
                fingerprint = known.get(path)
                if fingerprint is None:
                    try:
                        fingerprint = self._fingerprinter(path)
                    except OSError:
                        fingerprint = None

            if fingerprint is None:
                warning = MissingFragmentWarning(path, entry_key)
                logger.warning(f"Graph: {warning}")
                warnings.append(warning)
                continue

            snapshot[path] = fingerprint

        with self._lock:
            self._detach(entry_key)
            self._forward[entry_key] = snapshot
            for path in snapshot:
                self._reverse.setdefault(path, set()).add(entry_key)

        logger.debug(f"Graph: Registered {len(snapshot)} edge(s) for {entry_key}")
        return warnings

    def remove_entry(self, entry: str) -> bool:
        """
        Purge an entry and all of its edges.

        Returns:
            bool: True if the entry was tracked.
        """
        entry_key = os.path.abspath(entry)
        with self._lock:
            if entry_key not in self._forward:
                return False
            self._detach(entry_key)
            del self._forward[entry_key]
        logger.debug(f"Graph: Removed entry {entry_key}")
        return True

    def clear(self) -> None:
        with self._lock:
            self._forward.clear()
            self._reverse.clear()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def affected_entries(self, fragment_path: str) -> Set[str]:
        """Entries whose committed edge set contains `fragment_path`."""
        with self._lock:
            return set(self._reverse.get(os.path.abspath(fragment_path), ()))

    def edges(self, entry: str) -> Set[str]:
        """Fragment paths currently registered for `entry`."""
        with self._lock:
            return set(self._forward.get(os.path.abspath(entry), {}))

    def snapshot(self, entry: str) -> Dict[str, str]:
        """Fragment fingerprints recorded at the last registration of `entry`."""
        with self._lock:
            return dict(self._forward.get(os.path.abspath(entry), {}))

    def is_tracked(self, entry: str) -> bool:
        with self._lock:
            return os.path.abspath(entry) in self._forward

    def entries(self) -> List[str]:
        with self._lock:
            return sorted(self._forward)

    def is_stale_via_dependencies(self, entry: str) -> bool:
        """
        Check whether any registered fragment of `entry` moved on.

        A fragment that disappeared, became unreadable or whose fingerprint
        differs from the registration snapshot makes the entry stale. An
        untracked entry has no dependencies and is never stale through them.
        """
        snapshot = self.snapshot(entry)
        for path, recorded in snapshot.items():
            if not os.path.isfile(path):
                return True
            try:
                if self._fingerprinter(path) != recorded:
                    return True
            except OSError:
                return True
        return False

    def edge_count(self) -> int:
        with self._lock:
            return sum(len(fragments) for fragments in self._forward.values())

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._forward),
                "fragments": len(self._reverse),
                "edges": sum(len(fragments) for fragments in self._forward.values()),
            }

    # -------------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # -------------------------------------------------------------------------

    def _detach(self, entry_key: str) -> None:
        """Remove the reverse edges of `entry_key`, pruning orphan fragments."""
        for path in self._forward.get(entry_key, {}):
            dependents = self._reverse.get(path)
            if dependents is None:
                continue
            dependents.discard(entry_key)
            if not dependents:
                del self._reverse[path]
