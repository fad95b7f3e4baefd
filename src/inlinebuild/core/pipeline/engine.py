from __future__ import annotations

"""
Incremental Build Orchestration.

This module coordinates entry builds:
1. Decides per entry whether work is needed (content fingerprint of the
   entry, fingerprint snapshots of its fragments, entry state).
2. Assembles the entry through the worker stage.
3. Writes the artifact atomically.
4. Commits the entry fingerprint, build record and edge set, only after the
   write succeeded.

Full batches run on a bounded thread pool; fragment notifications schedule
forced rebuilds of the affected entries on a long-lived incremental pool.
A failing entry never aborts its batch and never alters previously
committed state.
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed, wait
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from inlinebuild.core.pipeline.components.reader import read_source
from inlinebuild.core.pipeline.components.writer import output_path_for, write_artifact
from inlinebuild.core.pipeline.stages.validator import validate_config
from inlinebuild.core.pipeline.stages.worker import render_entry
from inlinebuild.core.processing.minifier import minify_code
from inlinebuild.core.services.cache import ContentCache
from inlinebuild.core.services.dependency_graph import DependencyGraph
from inlinebuild.core.services.registry import TransformerRegistry, build_default_registry
from inlinebuild.core.services.scanner import list_entry_files
from inlinebuild.domain.build_models import (
    BatchResult,
    BuildOutcome,
    BuildResult,
    EntryStatus,
    create_built_result,
    create_failed_result,
    create_skipped_result,
)
from inlinebuild.domain.constants import BUILD_RECORD_KEY
from inlinebuild.domain.errors import (
    BuildCancelled,
    BuildFailure,
    ReadFailure,
    WriteFailure,
)

logger = logging.getLogger(__name__)

_Roots = Tuple[str, str]


class BuildOrchestrator:
    """
    Drives full-batch and single-entry rebuilds.

    Args:
        config: Raw or validated configuration dictionary.
        cache: Content cache; a fresh one is created when omitted.
        graph: Dependency graph; a fresh one is created when omitted.
        registry: Transformer registry; the built-in one when omitted.
    """

    def __init__(
            self,
            config: Optional[Dict[str, Any]] = None,
            *,
            cache: Optional[ContentCache] = None,
            graph: Optional[DependencyGraph] = None,
            registry: Optional[TransformerRegistry] = None,
    ) -> None:
        cfg, warnings = validate_config(config if config is not None else {}, strict=False)
        for warning in warnings:
            logger.warning(f"Configuration Warning: {warning}")

        self.config = cfg
        self.cache = cache if cache is not None else ContentCache()
        self.graph = graph if graph is not None else DependencyGraph()
        self.registry = registry if registry is not None else build_default_registry(cfg)
        self.max_workers = cfg["max_workers"] or (os.cpu_count() or 1)

        self._state_lock = threading.Lock()
        self._status: Dict[str, EntryStatus] = {}
        self._entry_locks: Dict[str, threading.Lock] = {}
        self._entry_roots: Dict[str, _Roots] = {}
        self._waiting_on: Dict[str, Set[str]] = {}
        self._counters = {"processed": 0, "skipped": 0, "failed": 0}

        self._cancellation_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Tuple[str, Future]] = []

    def __enter__(self) -> "BuildOrchestrator":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown(wait=True)

    # -------------------------------------------------------------------------
    # Build triggers
    # -------------------------------------------------------------------------

    def process_all(self, entries_root: str, fragments_root: str, output_root: str) -> BatchResult:
        """
        Build every entry found in `entries_root`.

        Entries run concurrently on a pool of `max_workers` threads. Entries
        that are tracked but no longer exist on disk are purged first.

        Args:
            entries_root: Flat directory of entries.
            fragments_root: Root of the fragment tree.
            output_root: Artifact directory.

        Returns:
            BatchResult: One result per entry, in discovery order.
        """
        start = time.perf_counter()
        entries_root = os.path.abspath(entries_root)
        entries = list_entry_files(entries_root, self.config["entry_extensions"])
        removed = self._purge_vanished_entries(entries_root, set(entries))

        logger.info(f"Batch started: {len(entries)} entr{'y' if len(entries) == 1 else 'ies'} in {entries_root}")

        results: Dict[str, BuildResult] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="BuildWorker") as executor:
            futures = {
                executor.submit(self.process_one, entry, fragments_root, output_root): entry
                for entry in entries
            }
            for future in as_completed(futures):
                entry = futures[future]
                try:
                    results[entry] = future.result()
                except Exception as e:
                    logger.exception(f"Unexpected error while building {entry}")
                    results[entry] = create_failed_result(entry, "InternalError", str(e))

        batch = BatchResult(
            entries_root=entries_root,
            output_root=os.path.abspath(output_root),
            results=[results[entry] for entry in entries],
            removed=removed,
            duration=time.perf_counter() - start,
        )
        summary = batch.summary()
        logger.info(
            f"Batch finished in {summary['duration']}s: {summary['rebuilt']} rebuilt, "
            f"{summary['skipped']} skipped, {summary['failed']} failed."
        )
        for failure in summary["failures"]:
            logger.error(f"  [{failure['kind']}] {failure['entry']}: {failure['error']}")
        return batch

    def process_one(
            self,
            entry: str,
            fragments_root: str,
            output_root: str,
            force: bool = False,
    ) -> BuildResult:
        """
        Build a single entry if it, or one of its fragments, changed.

        Args:
            entry: Entry path.
            fragments_root: Root of the fragment tree.
            output_root: Artifact directory.
            force: Rebuild even when nothing changed.

        Returns:
            BuildResult: Built, skipped or failed. Never raises for build problems.
        """
        entry_key = os.path.abspath(entry)
        fragments_root = os.path.abspath(fragments_root)
        output_root = os.path.abspath(output_root)
        output_path = output_path_for(entry_key, output_root, self.config["output_extension"])

        if self._cancellation_event.is_set():
            return create_failed_result(entry_key, BuildCancelled.kind, "Orchestrator is shut down", output_path)

        with self._lock_for(entry_key):
            with self._state_lock:
                self._entry_roots[entry_key] = (fragments_root, output_root)

            if not self._needs_rebuild(entry_key, output_path, force):
                self._set_status(entry_key, EntryStatus.CLEAN)
                self._bump("skipped")
                logger.debug(f"Up to date: {entry_key}")
                return create_skipped_result(entry_key, output_path, tuple(sorted(self.graph.edges(entry_key))))

            self._set_status(entry_key, EntryStatus.BUILDING)
            try:
                result = self._build(entry_key, fragments_root, output_path)
            except BuildCancelled as e:
                self._set_status(entry_key, EntryStatus.STALE)
                logger.info(f"Build abandoned for {entry_key}: {e.message}")
                return create_failed_result(entry_key, e.kind, e.message, output_path)
            except BuildFailure as e:
                self._set_status(entry_key, EntryStatus.FAILED)
                self._bump("failed")
                self._track_unresolved(entry_key, e)
                logger.error(f"Build failed for {entry_key} [{e.kind}]: {e.message}")
                return create_failed_result(entry_key, e.kind, e.message, output_path)

            self._set_status(entry_key, EntryStatus.CLEAN)
            self._bump("processed")
            logger.info(f"Generated: {result.output_path} ({result.size} bytes)")
            return result

    def notify_fragment_changed(self, fragment_path: str) -> Set[str]:
        """
        React to a fragment being created, modified or deleted.

        Every entry whose committed edge set contains the fragment, and every
        entry that last failed or built because it was missing, is marked
        STALE and scheduled for a forced rebuild on the incremental pool.

        Args:
            fragment_path: Path of the fragment that changed.

        Returns:
            Set[str]: Entries scheduled for rebuild.
        """
        return self.notify_fragments_changed([fragment_path])

    def notify_fragments_changed(self, fragment_paths: Iterable[str]) -> Set[str]:
        """
        Notify several fragment changes at once.

        An entry depending on more than one of the fragments is scheduled
        a single time.

        Returns:
            Set[str]: Entries scheduled for rebuild.
        """
        paths = sorted({os.path.abspath(p) for p in fragment_paths})
        candidates: Set[str] = set()
        for path in paths:
            candidates |= self.graph.affected_entries(path)
            with self._state_lock:
                candidates |= self._waiting_on.pop(path, set())

        scheduled: Set[str] = set()
        for entry_key in sorted(candidates):
            roots = self._roots_of(entry_key)
            if roots is None:
                continue
            self._set_status(entry_key, EntryStatus.STALE)
            if self._schedule(entry_key, roots):
                scheduled.add(entry_key)

        label = ", ".join(paths)
        if scheduled:
            logger.info(f"Fragment changed: {label} -> {len(scheduled)} entr{'y' if len(scheduled) == 1 else 'ies'} scheduled")
        else:
            logger.debug(f"Fragment changed: {label} (no dependent entries)")
        return scheduled

    def schedule_entry(self, entry: str, fragments_root: str, output_root: str) -> bool:
        """
        Queue an entry build on the incremental pool and return immediately.

        The build runs with `force=False`, so an entry whose content did not
        change is skipped. Results are collected by `wait_for_pending`.

        Returns:
            bool: False when the orchestrator is shut down.
        """
        roots = (os.path.abspath(fragments_root), os.path.abspath(output_root))
        return self._schedule(os.path.abspath(entry), roots, force=False)

    def wait_for_pending(self, timeout: Optional[float] = None) -> List[BuildResult]:
        """
        Collect the results of scheduled incremental rebuilds.

        Args:
            timeout: Maximum seconds to wait; None waits for all.

        Returns:
            List[BuildResult]: Results of the rebuilds that completed. Work
                               still running at timeout stays pending.
        """
        with self._state_lock:
            pending, self._pending = self._pending, []

        done, _ = wait([future for _, future in pending], timeout=timeout)

        results: List[BuildResult] = []
        remaining: List[Tuple[str, Future]] = []
        for entry_key, future in pending:
            if future not in done:
                remaining.append((entry_key, future))
                continue
            if future.cancelled():
                continue
            results.append(self._future_result(entry_key, future))

        if remaining:
            with self._state_lock:
                self._pending = remaining + self._pending
        return results

    # -------------------------------------------------------------------------
    # State management
    # -------------------------------------------------------------------------

    def remove_entry(self, entry: str) -> None:
        """Forget an entry: purge its edges, cache records and state."""
        entry_key = os.path.abspath(entry)
        with self._lock_for(entry_key):
            self.graph.remove_entry(entry_key)
            self.cache.invalidate(entry_key)
            with self._state_lock:
                self._status.pop(entry_key, None)
                self._entry_roots.pop(entry_key, None)
                self._entry_locks.pop(entry_key, None)
                self._discard_waiting(entry_key)
        logger.info(f"Entry removed: {entry_key}")

    def status_of(self, entry: str) -> EntryStatus:
        with self._state_lock:
            return self._status.get(os.path.abspath(entry), EntryStatus.UNKNOWN)

    def get_stats(self) -> Dict[str, Any]:
        """Counters describing the engine state."""
        cache_stats = self.cache.stats()
        graph_stats = self.graph.stats()
        with self._state_lock:
            return {
                "processed_count": self._counters["processed"],
                "skipped_count": self._counters["skipped"],
                "failed_count": self._counters["failed"],
                "cache_size": cache_stats["records"],
                "fingerprint_count": cache_stats["fingerprints"],
                "dependency_edge_count": graph_stats["edges"],
                "tracked_entries": graph_stats["entries"],
                "tracked_fragments": graph_stats["fragments"],
                "pending_rebuilds": sum(1 for _, f in self._pending if not f.done()),
            }

    def clear(self) -> None:
        """Drop every cached fingerprint, edge and entry state."""
        self.cache.clear()
        self.graph.clear()
        with self._state_lock:
            self._status.clear()
            self._entry_roots.clear()
            self._waiting_on.clear()
            self._entry_locks = {k: lock for k, lock in self._entry_locks.items() if lock.locked()}
            for key in self._counters:
                self._counters[key] = 0

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting work and cancel queued rebuilds.

        In-flight builds either finish or abandon before their write step.
        """
        self._cancellation_event.set()
        with self._state_lock:
            executor, self._executor = self._executor, None
            for _, future in self._pending:
                future.cancel()
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)
        logger.debug("Orchestrator shut down.")

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _needs_rebuild(self, entry_key: str, output_path: str, force: bool) -> bool:
        if force:
            return True
        if self.status_of(entry_key) in (EntryStatus.STALE, EntryStatus.FAILED):
            return True
        if self.cache.has_changed(entry_key, update=False):
            return True
        if self.graph.is_stale_via_dependencies(entry_key):
            return True
        if self._awaited_fragment_appeared(entry_key):
            return True
        return not os.path.isfile(output_path)

    def _awaited_fragment_appeared(self, entry_key: str) -> bool:
        """True once a fragment the entry was built without exists on disk."""
        with self._state_lock:
            awaited = [p for p, entries in self._waiting_on.items() if entry_key in entries]
        return any(os.path.isfile(p) for p in awaited)

    def _build(self, entry_key: str, fragments_root: str, output_path: str) -> BuildResult:
        """Assemble, write and commit one entry. Raises BuildFailure subclasses."""
        if output_path == entry_key:
            raise WriteFailure("Artifact path would overwrite the entry itself", path=output_path)

        try:
            source = read_source(entry_key)
        except (OSError, UnicodeDecodeError) as e:
            raise ReadFailure(f"Cannot read entry {entry_key}: {e}", path=entry_key) from e

        rendered = render_entry(
            entry_key,
            source.text,
            fragments_root,
            self.registry,
            cache=self.cache,
            strict_fragments=self.config["strict_fragments"],
            memoize_transforms=self.config["memoize_transforms"],
        )

        content = rendered.content
        if self.config["minify_output"]:
            content = minify_code(content, os.path.splitext(entry_key)[1])

        if self._cancellation_event.is_set():
            raise BuildCancelled("Shutdown requested before write", path=entry_key)

        try:
            size = write_artifact(output_path, content)
        except OSError as e:
            raise WriteFailure(f"Cannot write {output_path}: {e}", path=output_path) from e

        # Commit: only reached once the artifact is fully on disk
        self.cache.commit(entry_key, source.fingerprint)
        self.cache.set_record(
            entry_key,
            BUILD_RECORD_KEY,
            {"output_path": output_path, "size": size, "timestamp": time.time()},
            fingerprint=source.fingerprint,
        )
        graph_warnings = self.graph.register_edges(entry_key, list(rendered.fragments), rendered.fragments)

        with self._state_lock:
            self._discard_waiting(entry_key)
            for fragment_path in rendered.missing:
                self._waiting_on.setdefault(fragment_path, set()).add(entry_key)

        warnings = tuple(str(w) for w in list(rendered.warnings) + graph_warnings)
        return create_built_result(
            entry_key,
            output_path,
            size,
            rendered.transformer_calls,
            fragments=tuple(sorted(self.graph.edges(entry_key))),
            warnings=warnings,
        )

    def _schedule(self, entry_key: str, roots: _Roots, force: bool = True) -> bool:
        """Submit a rebuild unless one is already queued for the entry."""
        if self._cancellation_event.is_set():
            return False

        with self._state_lock:
            for queued_entry, future in self._pending:
                if queued_entry == entry_key and not future.running() and not future.done():
                    return True

            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="IncrementalWorker",
                )
            fragments_root, output_root = roots
            future = self._executor.submit(self.process_one, entry_key, fragments_root, output_root, force)
            self._pending.append((entry_key, future))

        future.add_done_callback(lambda f, e=entry_key: self._log_incremental(e, f))
        return True

    def _log_incremental(self, entry_key: str, future: Future) -> None:
        if future.cancelled():
            logger.debug(f"Incremental rebuild cancelled: {entry_key}")
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Incremental rebuild crashed for {entry_key}: {exc}")
            return
        result: BuildResult = future.result()
        if result.outcome is BuildOutcome.FAILED:
            logger.warning(f"Incremental rebuild failed: {entry_key} [{result.error_kind}] {result.error}")
        else:
            logger.info(f"Incremental rebuild {result.outcome.value}: {entry_key}")

    @staticmethod
    def _future_result(entry_key: str, future: Future) -> BuildResult:
        try:
            return future.result()
        except Exception as e:
            return create_failed_result(entry_key, "InternalError", str(e))

    def _track_unresolved(self, entry_key: str, failure: BuildFailure) -> None:
        """Remember entries that failed on a fragment that does not exist yet."""
        if not isinstance(failure, ReadFailure):
            return
        if not failure.path or failure.path == entry_key or os.path.exists(failure.path):
            return
        with self._state_lock:
            self._waiting_on.setdefault(failure.path, set()).add(entry_key)

    def _purge_vanished_entries(self, entries_root: str, present: Set[str]) -> List[str]:
        with self._state_lock:
            known = set(self._status) | set(self._entry_roots)
        known |= set(self.graph.entries())

        removed: List[str] = []
        for entry_key in sorted(known):
            if os.path.dirname(entry_key) != entries_root or entry_key in present:
                continue
            if os.path.exists(entry_key):
                continue
            self.remove_entry(entry_key)
            removed.append(entry_key)
        return removed

    def _lock_for(self, entry_key: str) -> threading.Lock:
        with self._state_lock:
            return self._entry_locks.setdefault(entry_key, threading.Lock())

    def _roots_of(self, entry_key: str) -> Optional[_Roots]:
        with self._state_lock:
            return self._entry_roots.get(entry_key)

    def _set_status(self, entry_key: str, status: EntryStatus) -> None:
        with self._state_lock:
            self._status[entry_key] = status

    def _bump(self, counter: str) -> None:
        with self._state_lock:
            self._counters[counter] += 1

    def _discard_waiting(self, entry_key: str) -> None:
        """Caller holds the state lock."""
        for fragment_path in [p for p, entries in self._waiting_on.items() if entry_key in entries]:
            self._waiting_on[fragment_path].discard(entry_key)
            if not self._waiting_on[fragment_path]:
                del self._waiting_on[fragment_path]
