from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: initialization of logging, loading and
merging of configuration sources (defaults, the project's inlinebuild.json
and CLI overrides), layout pre-flight checks, build or watch execution and
result rendering.

Exit codes: 0 success, 1 at least one entry failed, 2 invalid input,
130 interrupted.
"""

import json
import sys
from typing import Any, Dict, List, Optional

from inlinebuild.core.pipeline.engine import BuildOrchestrator
from inlinebuild.core.pipeline.stages.validator import prepare_layout, resolve_layout, validate_config
from inlinebuild.core.pipeline.watcher import ProjectWatcher
from inlinebuild.domain.build_models import BatchResult
from inlinebuild.domain.config import load_config, save_config
from inlinebuild.domain.errors import ConfigError
from inlinebuild.infra.logging import (
    LoggingConfig,
    configure_logging,
    get_logger,
)
from inlinebuild.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_INVALID_INPUT = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code.
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (console on stderr, optional rotating file)
    configure_logging(LoggingConfig.for_cli(debug=args.debug, log_file=args.log_file), force=True)

    logger.debug("CLI execution initiated. Resolving configuration hierarchy...")

    # 3. Resolve configuration (defaults < project file < CLI)
    base_conf = load_config(args.working_dir)
    overrides = cli_args.args_to_overrides(args)
    raw_conf = _merge_config(base_conf, overrides)

    clean_conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    # 4. Pre-flight layout verification
    layout = resolve_layout(clean_conf)
    try:
        prepare_layout(layout)
    except ConfigError as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if args.save_config:
        try:
            path = save_config(clean_conf, layout["working_dir"])
            logger.info(f"Configuration saved to {path}")
        except OSError as e:
            logger.error(f"Cannot save configuration: {e}")

    # 5. Build / watch execution phase
    orchestrator = BuildOrchestrator(clean_conf)
    try:
        if args.build:
            logger.info("Starting build process...")
            batch = orchestrator.process_all(
                layout["entries_root"], layout["fragments_root"], layout["output_root"]
            )
            _render(batch, args.json_output)
            return EXIT_OK if batch.ok else EXIT_FAILURES

        watcher = ProjectWatcher(
            orchestrator,
            layout,
            poll_interval=clean_conf["poll_interval"],
            debounce_ms=clean_conf["debounce_ms"],
        )
        _render(watcher.start(), args.json_output)
        watcher.run()
        return EXIT_OK

    except KeyboardInterrupt:
        msg = "Interrupted by user."
        logger.warning(msg)
        print(msg, file=sys.stderr)
        return EXIT_INTERRUPTED
    finally:
        orchestrator.shutdown(wait=True)

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Perform a shallow merge of override values into the base configuration.

    Only known keys with a value are merged.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration state.
    """
    out = dict(base)
    keys_to_merge = [
        "working_dir", "entries_dir", "fragments_dir", "output_dir",
        "entry_extensions", "output_extension", "max_workers",
        "strict_fragments", "minify_output", "memoize_transforms",
    ]
    for k in keys_to_merge:
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]
    return out

# -----------------------------------------------------------------------------
# VIEW RENDERING
# -----------------------------------------------------------------------------

def _render(batch: BatchResult, as_json: bool) -> None:
    if as_json:
        payload = batch.summary()
        payload["results"] = [r.to_dict() for r in batch.results]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        _print_human_summary(batch)


def _print_human_summary(batch: BatchResult) -> None:
    """
    Format and print a batch result to the standard output.

    Args:
        batch: The batch result to render.
    """
    summary = batch.summary()

    if batch.ok:
        print("Build completed successfully.")
    else:
        print("Build completed with failures.")

    print(f"Output directory: {summary['output_root']}")

    stats_keys = {
        "rebuilt": "Entries rebuilt",
        "skipped": "Entries up to date",
        "failed": "Entries failed",
    }
    for key, label in stats_keys.items():
        print(f"{label}: {summary[key]}")

    if summary["removed"]:
        print(f"Entries removed: {len(summary['removed'])}")

    for result in batch.built:
        print(f"  + {result.output_path} ({result.size} bytes)")

    if summary["failures"]:
        print("\nFailures:")
        for failure in summary["failures"]:
            print(f"  - {failure['entry']} [{failure['kind']}]: {failure['error']}")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
