from __future__ import annotations

"""
Integration tests for Watch Mode.

Verifies:
1. Debouncer coalescing of bursts into a single notification.
2. Snapshot diffing of entries and fragments and the dispatched actions.
   Changed entries build on the worker pool, off the polling thread.
3. The blocking polling loop honours its stop signal.
"""

import threading
import time
from pathlib import Path
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

from inlinebuild.core.pipeline.engine import BuildOrchestrator
from inlinebuild.core.pipeline.watcher import ChangeDebouncer, ProjectWatcher
from inlinebuild.core.services.registry import build_default_registry
from inlinebuild.domain.build_models import BuildOutcome


@pytest.fixture
def str_layout(layout: Dict[str, Path]) -> Dict[str, str]:
    return {key: str(value) for key, value in layout.items()}


@pytest.fixture
def engine(mock_config_dict: Dict[str, Any]) -> BuildOrchestrator:
    orchestrator = BuildOrchestrator(mock_config_dict)
    yield orchestrator
    orchestrator.shutdown(wait=True)

# -----------------------------------------------------------------------------
# DEBOUNCER
# -----------------------------------------------------------------------------

def test_debouncer_flush_coalesces_paths(tmp_path: Path) -> None:
    orchestrator = MagicMock()
    orchestrator.notify_fragments_changed.return_value = set()
    debouncer = ChangeDebouncer(orchestrator, delay_ms=10_000)

    for name in ("a.css", "b.css", "a.css"):
        debouncer.push(str(tmp_path / name))
    assert debouncer.pending == 2

    debouncer.flush()

    orchestrator.notify_fragments_changed.assert_called_once_with(
        {str(tmp_path / "a.css"), str(tmp_path / "b.css")}
    )
    assert debouncer.pending == 0


def test_debouncer_timer_fires_once_after_quiet_period(tmp_path: Path) -> None:
    orchestrator = MagicMock()
    orchestrator.notify_fragments_changed.return_value = set()
    debouncer = ChangeDebouncer(orchestrator, delay_ms=50)

    for i in range(5):
        debouncer.push(str(tmp_path / f"{i}.css"))

    deadline = time.monotonic() + 5
    while not orchestrator.notify_fragments_changed.called and time.monotonic() < deadline:
        time.sleep(0.02)
    time.sleep(0.2)

    assert orchestrator.notify_fragments_changed.call_count == 1
    assert len(orchestrator.notify_fragments_changed.call_args[0][0]) == 5


def test_debouncer_cancel_drops_events(tmp_path: Path) -> None:
    orchestrator = MagicMock()
    debouncer = ChangeDebouncer(orchestrator, delay_ms=10_000)
    debouncer.push(str(tmp_path / "a.css"))

    debouncer.cancel()

    assert debouncer.flush() == set()
    orchestrator.notify_fragments_changed.assert_not_called()

# -----------------------------------------------------------------------------
# POLLING WATCHER
# -----------------------------------------------------------------------------

def test_start_runs_initial_build(engine, str_layout, make_entry, layout) -> None:
    make_entry("main.js", "run();")
    watcher = ProjectWatcher(engine, str_layout, debounce_ms=10_000)

    batch = watcher.start()

    assert len(batch.built) == 1
    assert (layout["output_root"] / "main.js").exists()


def test_poll_once_dispatches_entry_events(engine, str_layout, make_entry, layout) -> None:
    keep = make_entry("keep.js", "a();")
    gone = make_entry("gone.js", "b();")
    watcher = ProjectWatcher(engine, str_layout, debounce_ms=10_000)
    watcher.start()

    keep.write_text("a(1234);", encoding="utf-8")
    gone.unlink()
    added = make_entry("added.js", "c();")

    events = watcher.poll_once()
    engine.wait_for_pending()

    assert events["entries_changed"] == sorted([str(keep), str(added)])
    assert events["entries_removed"] == [str(gone)]
    assert (layout["output_root"] / "keep.js").read_text(encoding="utf-8") == "a(1234);"
    assert (layout["output_root"] / "added.js").read_text(encoding="utf-8") == "c();"
    assert not engine.graph.is_tracked(str(gone))


def test_changed_entries_build_in_parallel_off_the_polling_thread(
        str_layout, make_entry, make_fragment, layout, mock_config_dict) -> None:
    entered = []
    entered_lock = threading.Lock()
    release = threading.Event()

    def slow(path: str) -> str:
        with entered_lock:
            entered.append(threading.current_thread().name)
        release.wait(5)
        return "SLOW"

    registry = build_default_registry(mock_config_dict)
    registry.register("slow", slow)
    engine = BuildOrchestrator(mock_config_dict, registry=registry)

    make_fragment("slow", "x", "?")
    one = make_entry("one.js", "a();")
    two = make_entry("two.js", "b();")
    watcher = ProjectWatcher(engine, str_layout, debounce_ms=10_000)
    watcher.start()

    one.write_text("{{slow/x}}", encoding="utf-8")
    two.write_text("{{slow/x}}", encoding="utf-8")
    events = watcher.poll_once()

    deadline = time.monotonic() + 5
    while len(entered) < 2 and time.monotonic() < deadline:
        time.sleep(0.02)

    assert events["entries_changed"] == [str(one), str(two)]
    assert len(entered) == 2
    assert threading.current_thread().name not in entered

    release.set()
    results = engine.wait_for_pending()
    engine.shutdown()

    assert sorted(r.outcome.value for r in results) == ["built", "built"]
    assert (layout["output_root"] / "two.js").read_text(encoding="utf-8") == "SLOW"

def test_poll_once_routes_fragment_events_through_debouncer(
        engine, str_layout, make_entry, make_fragment, layout) -> None:
    make_fragment("css", "a", ".a{}")
    make_entry("main.js", "{{css/a}}")
    watcher = ProjectWatcher(engine, str_layout, debounce_ms=10_000)
    watcher.start()

    fragment = make_fragment("css", "a", ".a{color:green}")
    events = watcher.poll_once()

    assert events["fragments_changed"] == [str(fragment)]
    assert watcher.debouncer.pending == 1

    watcher.debouncer.flush()
    results = engine.wait_for_pending()

    assert [r.outcome for r in results] == [BuildOutcome.BUILT]
    assert (layout["output_root"] / "main.js").read_text(encoding="utf-8") == ".a{color:green}"


def test_quiet_poll_reports_nothing(engine, str_layout, make_entry) -> None:
    make_entry("main.js", "run();")
    watcher = ProjectWatcher(engine, str_layout, debounce_ms=10_000)
    watcher.start()

    assert watcher.poll_once() == {"entries_changed": [], "entries_removed": [], "fragments_changed": []}


def test_run_stops_on_event(engine, str_layout) -> None:
    watcher = ProjectWatcher(engine, str_layout, poll_interval=0.05, debounce_ms=10_000)
    watcher.start()
    stop = threading.Event()

    thread = threading.Thread(target=watcher.run, args=(stop,), daemon=True)
    thread.start()
    time.sleep(0.2)
    stop.set()
    thread.join(timeout=5)

    assert not thread.is_alive()
