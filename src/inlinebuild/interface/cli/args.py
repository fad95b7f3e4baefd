from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line interface schema, including help messages,
argument types, and defaults. Provides logic to translate raw argparse
namespaces into domain-compatible configuration overrides.
"""

import argparse
from typing import Any, Dict, List, Optional

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the inlinebuild CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="inlinebuild",
        description=(
            "Assemble entry scripts by inlining the fragments their "
            "{{type/name}} placeholders reference, rebuilding only what changed."
        ),
    )

    # --- Project Layout ---
    p.add_argument(
        "-d", "--dir",
        dest="working_dir",
        required=True,
        help="Project directory holding the entries (required).",
    )
    p.add_argument(
        "--entries",
        dest="entries_dir",
        default=None,
        help="Entries directory, relative to --dir (default: the project directory).",
    )
    p.add_argument(
        "--fragments",
        dest="fragments_dir",
        default=None,
        help="Fragment tree root, relative to --dir (default: src).",
    )
    p.add_argument(
        "--output",
        dest="output_dir",
        default=None,
        help="Artifact directory, relative to --dir (default: dist).",
    )
    p.add_argument(
        "--ext",
        dest="entry_extensions",
        default=None,
        help="Comma-separated entry extensions (default: .js).",
    )
    p.add_argument(
        "--out-ext",
        dest="output_extension",
        default=None,
        help="Artifact extension (default: same as the entry).",
    )

    # --- Execution Mode ---
    p.add_argument(
        "-b", "--build",
        action="store_true",
        help="Build once and exit instead of watching for changes.",
    )
    p.add_argument(
        "--workers",
        dest="max_workers",
        type=int,
        default=None,
        help="Maximum parallel builds (0 = one per CPU).",
    )

    # --- Build Behaviour ---
    p.add_argument(
        "--lenient",
        action="store_true",
        help="Keep placeholders of missing fragments instead of failing the entry.",
    )
    p.add_argument(
        "--minify",
        action="store_true",
        help="Strip whole-line comments and blank runs from generated artifacts.",
    )
    p.add_argument(
        "--no-memoize",
        action="store_true",
        help="Transform shared fragments once per entry instead of once per content version.",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit.",
    )
    p.add_argument(
        "--save-config",
        action="store_true",
        help="Persist the effective configuration to inlinebuild.json.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG and keep artifacts unminified.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        nargs="?",
        const="",
        default=None,
        help="Also log to a rotating file (default location when no path is given).",
    )

    # --- Format Selection ---
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the build summary as JSON.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a domain configuration dictionary.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset. Unset options map to None.
    """
    overrides: Dict[str, Any] = {}

    overrides["working_dir"] = args.working_dir
    overrides["entries_dir"] = args.entries_dir
    overrides["fragments_dir"] = args.fragments_dir
    overrides["output_dir"] = args.output_dir
    overrides["output_extension"] = args.output_extension
    overrides["max_workers"] = args.max_workers

    if args.entry_extensions:
        overrides["entry_extensions"] = _split_csv(args.entry_extensions)

    if args.lenient:
        overrides["strict_fragments"] = False
    if args.minify:
        overrides["minify_output"] = True
    if args.debug:
        overrides["minify_output"] = False
    if args.no_memoize:
        overrides["memoize_transforms"] = False

    return overrides

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    """
    Convert a comma-separated string into a list of sanitized strings.
    """
    if value is None:
        return None
    parts = [x.strip() for x in value.split(",")]
    return [x for x in parts if x]
