from __future__ import annotations

"""
Content Fingerprint Cache.

Answers "has this file's content changed since I last observed it?" and
memoizes per-operation results against the fingerprint they were computed
from. Fingerprints are xxHash3-64 digests of the raw bytes: change detection
never depends on filesystem timestamps. The cache is in-memory, thread-safe
and fails open: an unreadable file is always reported as changed so that the
caller attempts (and can correctly fail) a rebuild.
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import xxhash

logger = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 1024 * 1024


# -----------------------------------------------------------------------------
# FINGERPRINT PRIMITIVES
# -----------------------------------------------------------------------------

def fingerprint_bytes(data: bytes) -> str:
    """Return the hex digest of an in-memory byte string."""
    return xxhash.xxh3_64_hexdigest(data)


def compute_fingerprint(path: str) -> str:
    """
    Stream a file through xxHash3-64 and return its hex digest.

    Args:
        path: File to fingerprint.

    Returns:
        str: 16-character hexadecimal digest.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    hasher = xxhash.xxh3_64()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_READ_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


# -----------------------------------------------------------------------------
# CACHE SERVICE
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class CacheRecord:
    """Memoized operation result bound to the fingerprint it was computed against."""
    fingerprint: str
    value: Any


class ContentCache:
    """
    In-memory store of file fingerprints and fingerprint-bound records.

    Keys are absolute paths. All public methods are safe to call from
    concurrent build workers.
    """

    def __init__(self) -> None:
        self._fingerprints: Dict[str, str] = {}
        self._records: Dict[Tuple[str, str], CacheRecord] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Change detection
    # -------------------------------------------------------------------------

    @staticmethod
    def fingerprint(path: str) -> str:
        """
        Deterministic content digest of `path`.

        Raises:
            OSError: If the file cannot be read.
        """
        return compute_fingerprint(path)

    def has_changed(self, path: str, update: bool = True) -> bool:
        """
        Compare the current fingerprint of `path` with the stored one.

        The first observation of a path always reports a change. When
        `update` is True the stored fingerprint is replaced by the current
        value and records computed against an older fingerprint are dropped.

        Args:
            path: File to check.
            update: Whether to store the freshly computed fingerprint.

        Returns:
            bool: True if the content changed, was never seen, or is unreadable.
        """
        key = os.path.abspath(path)
        try:
            current = compute_fingerprint(key)
        except OSError as e:
            logger.debug(f"Cache: Cannot fingerprint {key} ({e}); reporting as changed.")
            return True

        with self._lock:
            previous = self._fingerprints.get(key)
            changed = previous != current
            if changed and update:
                self._fingerprints[key] = current
                self._drop_outdated_records(key, current)
        return changed

    def stored_fingerprint(self, path: str) -> Optional[str]:
        """Return the last committed fingerprint of `path`, if any."""
        with self._lock:
            return self._fingerprints.get(os.path.abspath(path))

    def commit(self, path: str, fingerprint: str) -> None:
        """
        Store a fingerprint the caller observed itself.

        Used to record the exact content version a successful build consumed.
        """
        key = os.path.abspath(path)
        with self._lock:
            self._fingerprints[key] = fingerprint
            self._drop_outdated_records(key, fingerprint)

    # -------------------------------------------------------------------------
    # Memoized records
    # -------------------------------------------------------------------------

    def get_record(self, path: str, op_key: str, fingerprint: Optional[str] = None) -> Optional[Any]:
        """
        Retrieve a memoized value if it is still valid for the file content.

        Args:
            path: File the record belongs to.
            op_key: Operation identifier (e.g. "build", "transform:css").
            fingerprint: Current fingerprint if already known by the caller.

        Returns:
            Optional[Any]: The stored value, or None on miss / stale / unreadable.
        """
        key = os.path.abspath(path)
        if fingerprint is None:
            try:
                fingerprint = compute_fingerprint(key)
            except OSError:
                self.invalidate(key, op_key)
                return None

        with self._lock:
            record = self._records.get((key, op_key))
            if record is None:
                return None
            if record.fingerprint != fingerprint:
                del self._records[(key, op_key)]
                return None
            return record.value

    def set_record(self, path: str, op_key: str, value: Any, fingerprint: Optional[str] = None) -> bool:
        """
        Memoize `value` for (path, op_key) against the file's fingerprint.

        Args:
            path: File the record belongs to.
            op_key: Operation identifier.
            value: Arbitrary result metadata.
            fingerprint: Fingerprint the value was computed from; computed
                         from disk when omitted.

        Returns:
            bool: False if the file could not be fingerprinted (nothing stored).
        """
        key = os.path.abspath(path)
        if fingerprint is None:
            try:
                fingerprint = compute_fingerprint(key)
            except OSError:
                return False

        with self._lock:
            self._records[(key, op_key)] = CacheRecord(fingerprint=fingerprint, value=value)
        return True

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def invalidate(self, path: str, op_key: Optional[str] = None) -> None:
        """
        Forget cached state for a file.

        With `op_key` only that record is dropped. Without it every record of
        the file and its stored fingerprint are dropped, so the next
        `has_changed` reports a change.
        """
        key = os.path.abspath(path)
        with self._lock:
            if op_key is not None:
                self._records.pop((key, op_key), None)
                return
            self._fingerprints.pop(key, None)
            for record_key in [k for k in self._records if k[0] == key]:
                del self._records[record_key]

    def clear(self) -> None:
        """Drop every fingerprint and record."""
        with self._lock:
            self._fingerprints.clear()
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "records": len(self._records),
                "fingerprints": len(self._fingerprints),
            }

    # -------------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # -------------------------------------------------------------------------

    def _drop_outdated_records(self, key: str, fingerprint: str) -> None:
        outdated = [
            k for k, rec in self._records.items()
            if k[0] == key and rec.fingerprint != fingerprint
        ]
        for record_key in outdated:
            del self._records[record_key]
