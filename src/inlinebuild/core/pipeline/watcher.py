from __future__ import annotations

"""
Watch Mode.

Polls the entries directory and the fragment tree and drives the
orchestrator from the differences between two snapshots:

- entry added or modified -> `schedule_entry` (built on the orchestrator pool;
                             the fingerprint decides)
- entry removed           -> `remove_entry`
- fragment event          -> `ChangeDebouncer`, which coalesces bursts into
                             one `notify_fragments_changed` call

Modification time and size are only used as a cheap trigger; whether an
entry is rebuilt is always decided by content fingerprints.
"""

import logging
import os
import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple

from inlinebuild.core.pipeline.engine import BuildOrchestrator
from inlinebuild.core.services.scanner import classify_fragment, yield_entry_files, yield_fragment_files
from inlinebuild.domain.build_models import BatchResult, BuildResult
from inlinebuild.domain.constants import DEFAULT_DEBOUNCE_MS, DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

_StatKey = Tuple[int, int]


# -----------------------------------------------------------------------------
# DEBOUNCER
# -----------------------------------------------------------------------------

class ChangeDebouncer:
    """
    Coalesces fragment notifications arriving within a short window.

    Each `push` restarts the window; when it elapses every distinct path
    collected so far is handed to the orchestrator in one call.

    Args:
        orchestrator: Receiver of the coalesced notifications.
        delay_ms: Quiet period before flushing.
    """

    def __init__(self, orchestrator: BuildOrchestrator, delay_ms: int = DEFAULT_DEBOUNCE_MS) -> None:
        self._orchestrator = orchestrator
        self._delay = max(delay_ms, 0) / 1000.0
        self._paths: Set[str] = set()
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def push(self, fragment_path: str) -> None:
        with self._lock:
            self._paths.add(os.path.abspath(fragment_path))
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> Set[str]:
        """
        Deliver the collected paths now.

        Returns:
            Set[str]: Entries scheduled by the orchestrator.
        """
        with self._lock:
            paths, self._paths = self._paths, set()
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        if not paths:
            return set()
        logger.debug(f"Debouncer: Flushing {len(paths)} fragment event(s)")
        return self._orchestrator.notify_fragments_changed(paths)

    def cancel(self) -> None:
        """Drop pending paths without notifying."""
        with self._lock:
            self._paths.clear()
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._paths)


# -----------------------------------------------------------------------------
# POLLING WATCHER
# -----------------------------------------------------------------------------

class ProjectWatcher:
    """
    Snapshot-diffing watcher for one project layout.

    Args:
        orchestrator: Engine to drive.
        layout: Output of `resolve_layout` (entries, fragments, output roots).
        poll_interval: Seconds between two snapshots.
        debounce_ms: Fragment notification window.
    """

    def __init__(
            self,
            orchestrator: BuildOrchestrator,
            layout: Dict[str, str],
            poll_interval: float = DEFAULT_POLL_INTERVAL,
            debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ) -> None:
        self.orchestrator = orchestrator
        self.entries_root = layout["entries_root"]
        self.fragments_root = layout["fragments_root"]
        self.output_root = layout["output_root"]
        self.poll_interval = poll_interval
        self.debouncer = ChangeDebouncer(orchestrator, debounce_ms)

        self._entries: Dict[str, _StatKey] = {}
        self._fragments: Dict[str, _StatKey] = {}
        self._stop_event = threading.Event()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> BatchResult:
        """Run the initial full build and record the baseline snapshot."""
        self._entries = self._snapshot_entries()
        self._fragments = self._snapshot_fragments()
        logger.info(f"Initial scan completed: {len(self._entries)} entries, {len(self._fragments)} fragments")
        return self.orchestrator.process_all(self.entries_root, self.fragments_root, self.output_root)

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Block and poll until `stop_event` (or `stop()`) is set.

        Args:
            stop_event: External stop signal; the watcher's own is used when omitted.
        """
        event = stop_event or self._stop_event
        logger.info(f"Watching for file changes in {self.entries_root}")
        try:
            while not event.is_set():
                self.poll_once()
                event.wait(self.poll_interval)
        finally:
            self.debouncer.flush()
            self.orchestrator.wait_for_pending()

    def stop(self) -> None:
        self._stop_event.set()

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    def poll_once(self) -> Dict[str, List[str]]:
        """
        Diff the filesystem against the previous snapshot and dispatch events.

        Returns:
            Dict[str, List[str]]: Paths per event kind: `entries_changed`,
                                  `entries_removed`, `fragments_changed`.
        """
        entries = self._snapshot_entries()
        fragments = self._snapshot_fragments()

        entries_changed = sorted(p for p, key in entries.items() if self._entries.get(p) != key)
        entries_removed = sorted(set(self._entries) - set(entries))
        fragments_changed = sorted(
            {p for p, key in fragments.items() if self._fragments.get(p) != key}
            | (set(self._fragments) - set(fragments))
        )

        self._entries = entries
        self._fragments = fragments

        for path in entries_removed:
            logger.info(f"File has been removed: {path}")
            self.orchestrator.remove_entry(path)

        for path in entries_changed:
            logger.info(f"File has been changed: {path}")
            self.orchestrator.schedule_entry(path, self.fragments_root, self.output_root)

        for path in fragments_changed:
            logger.debug(f"Fragment event: {path}")
            self.debouncer.push(path)

        self._drain_results()

        return {
            "entries_changed": entries_changed,
            "entries_removed": entries_removed,
            "fragments_changed": fragments_changed,
        }

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _drain_results(self) -> List[BuildResult]:
        return self.orchestrator.wait_for_pending(timeout=0)

    def _snapshot_entries(self) -> Dict[str, _StatKey]:
        extensions = self.orchestrator.config["entry_extensions"]
        return _stat_map(yield_entry_files(self.entries_root, extensions))

    def _snapshot_fragments(self) -> Dict[str, _StatKey]:
        if not os.path.isdir(self.fragments_root):
            return {}
        laid_out = (
            p for p in yield_fragment_files(self.fragments_root)
            if classify_fragment(p, self.fragments_root) is not None
        )
        return _stat_map(laid_out)


def _stat_map(paths: Iterable[str]) -> Dict[str, _StatKey]:
    """(mtime_ns, size) per path; files vanishing mid-scan are skipped."""
    snapshot: Dict[str, _StatKey] = {}
    for path in paths:
        try:
            st = os.stat(path)
        except OSError:
            continue
        snapshot[path] = (st.st_mtime_ns, st.st_size)
    return snapshot
