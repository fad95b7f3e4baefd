from __future__ import annotations

"""
Configuration Validator.

Acts as a gatekeeper to ensure that the configuration dictionary passed
to the engine contains valid types and normalized values, and resolves the
project directory layout. Uses a schema-driven approach to minimize
boilerplate.
"""

import logging
import os
from typing import Any, Dict, List, Tuple

from inlinebuild.domain.config import get_default_config
from inlinebuild.domain.constants import DEFAULT_ENTRY_EXTENSIONS
from inlinebuild.domain.errors import ConfigError
from inlinebuild.infra.fs import normalize_path, resolve_under, safe_mkdir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# DECLARATIVE SCHEMA
# -----------------------------------------------------------------------------

_STRING_FIELDS = [
    "working_dir", "entries_dir", "fragments_dir", "output_dir",
    "output_extension", "jpg_mime_type",
]

_BOOL_FIELDS = [
    "strict_fragments", "memoize_transforms", "minify_output",
    "css_minify", "html_minify", "html_remove_comments",
    "svg_remove_metadata", "json_pretty_print",
    "js_debug_comments", "js_separators",
]

_INT_FIELDS = ["max_workers", "debounce_ms"]
_FLOAT_FIELDS = ["poll_interval"]
_LIST_FIELDS = ["entry_extensions"]


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize the configuration dictionary.

    Ensures types are correct (converting strings to bools/numbers/lists if
    needed) and fills in missing values with defaults.

    Args:
        config: The raw configuration dictionary (or untrusted input).
        strict: If True, raises ConfigError on invalid data.

    Returns:
        Tuple[Dict, List[str]]: (Normalized Config, List of Warnings).
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise ConfigError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    for key, value in config.items():
        if key not in defaults:
            msg = f"Unknown configuration key '{key}'."
            if strict:
                raise ConfigError(msg)
            warnings.append(f"{msg} Ignored.")
            continue
        merged[key] = value

    for field in _STRING_FIELDS:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in _BOOL_FIELDS:
        merged[field] = _as_bool(merged.get(field), defaults[field], field, warnings, strict)

    for field in _INT_FIELDS:
        merged[field] = _as_non_negative_int(merged.get(field), defaults[field], field, warnings, strict)

    for field in _FLOAT_FIELDS:
        merged[field] = _as_positive_float(merged.get(field), defaults[field], field, warnings, strict)

    for field in _LIST_FIELDS:
        merged[field] = _as_list_str(merged.get(field), defaults[field], field, warnings, strict)

    merged["entry_extensions"] = _normalize_extensions(merged["entry_extensions"], warnings, strict)
    merged["output_extension"] = _normalize_output_extension(merged["output_extension"])

    return merged, warnings


def resolve_layout(config: Dict[str, Any]) -> Dict[str, str]:
    """
    Compute the absolute directory layout from a validated configuration.

    Args:
        config: Output of `validate_config`.

    Returns:
        Dict[str, str]: Keys `working_dir`, `entries_root`, `fragments_root`,
                        `output_root`.
    """
    working_dir = normalize_path(config["working_dir"], os.getcwd())
    entries_dir = config.get("entries_dir") or ""
    return {
        "working_dir": working_dir,
        "entries_root": resolve_under(working_dir, entries_dir) if entries_dir else working_dir,
        "fragments_root": resolve_under(working_dir, config["fragments_dir"]),
        "output_root": resolve_under(working_dir, config["output_dir"]),
    }


def prepare_layout(layout: Dict[str, str]) -> None:
    """
    Check the working directory and create fragment/output directories.

    Mirrors the pre-flight checks done before any build: the working and
    entries directories must exist and be readable, the fragments and output
    directories are created when missing and the output must be writable.

    Args:
        layout: Output of `resolve_layout`.

    Raises:
        ConfigError: If any check fails. All problems are reported at once.
    """
    errors: List[str] = []

    for key in ("working_dir", "entries_root"):
        path = layout[key]
        if not os.path.exists(path):
            errors.append(f"Directory does not exist: {path}")
        elif not os.path.isdir(path):
            errors.append(f"Path is not a directory: {path}")
        elif not os.access(path, os.R_OK):
            errors.append(f"No read permission for directory: {path}")

    if not errors:
        for key in ("fragments_root", "output_root"):
            ok, err = safe_mkdir(layout[key])
            if not ok:
                errors.append(f"Cannot create directory {layout[key]}: {err}")

        output_root = layout["output_root"]
        if os.path.isdir(output_root) and not os.access(output_root, os.W_OK):
            errors.append(f"No write permission for output directory: {output_root}")

    if errors:
        details = "\n".join(f"  - {e}" for e in errors)
        raise ConfigError(f"Configuration validation failed:\n{details}")


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        v = value.strip()
        return v if v else fallback

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise ConfigError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    """Coerce various input types into native booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return fallback

    if not strict:
        if isinstance(value, (int, float)) and value in (0, 1):
            warnings.append(f"Field '{field}' converted from number {value} to bool.")
            return bool(value)
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("true", "1", "yes", "y", "on"):
                warnings.append(f"Field '{field}' converted from '{value}' to True.")
                return True
            if s in ("false", "0", "no", "n", "off"):
                warnings.append(f"Field '{field}' converted from '{value}' to False.")
                return False

    msg = f"Invalid field '{field}': expected bool, received {type(value).__name__}."
    if strict:
        raise ConfigError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_non_negative_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Coerce to an int >= 0; numeric strings are accepted in lenient mode."""
    if value is None:
        return fallback

    candidate: Any = value
    if isinstance(value, str) and not strict:
        try:
            candidate = int(value.strip())
            warnings.append(f"Field '{field}' converted from '{value}' to {candidate}.")
        except ValueError:
            candidate = value

    if isinstance(candidate, int) and not isinstance(candidate, bool) and candidate >= 0:
        return candidate

    msg = f"Invalid field '{field}': expected non-negative int, received {value!r}."
    if strict:
        raise ConfigError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_positive_float(value: Any, fallback: float, field: str, warnings: List[str], strict: bool) -> float:
    """Coerce to a float > 0."""
    if value is None:
        return fallback

    candidate: Any = value
    if isinstance(value, str) and not strict:
        try:
            candidate = float(value.strip())
        except ValueError:
            candidate = value

    if isinstance(candidate, (int, float)) and not isinstance(candidate, bool) and candidate > 0:
        return float(candidate)

    msg = f"Invalid field '{field}': expected positive number, received {value!r}."
    if strict:
        raise ConfigError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_list_str(value: Any, fallback: List[str], field: str, warnings: List[str], strict: bool) -> List[str]:
    """Ensure input is a list of sanitized strings, supporting CSV parsing."""
    if value is None:
        return list(fallback)

    if isinstance(value, str) and not strict:
        items = [x.strip() for x in value.split(",") if x.strip()]
        if items:
            warnings.append(f"Field '{field}' converted from CSV string to list.")
            return items
        return list(fallback)

    if isinstance(value, list):
        out: List[str] = []
        for i, item in enumerate(value):
            if isinstance(item, str):
                s = item.strip()
                if s:
                    out.append(s)
            else:
                msg = f"Invalid item in '{field}[{i}]': expected str."
                if strict:
                    raise ConfigError(msg)
                warnings.append(f"{msg} Item discarded.")
        return out if out else list(fallback)

    msg = f"Invalid field '{field}': expected list[str], received {type(value).__name__}."
    if strict:
        raise ConfigError(msg)
    warnings.append(f"{msg} Using fallback.")
    return list(fallback)


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: DOMAIN NORMALIZATION
# -----------------------------------------------------------------------------

def _normalize_extensions(exts: List[str], warnings: List[str], strict: bool) -> List[str]:
    """Ensure all entry extensions are lower-case and prefixed with a dot."""
    out: List[str] = []
    for ext in exts:
        e = ext.strip().lower()
        if not e:
            continue
        if not e.startswith("."):
            if strict:
                raise ConfigError(f"Invalid extension '{ext}': must start with '.'.")
            warnings.append(f"Extension '{ext}' corrected to '.{e}'.")
            e = "." + e
        if e not in out:
            out.append(e)
    return out if out else list(DEFAULT_ENTRY_EXTENSIONS)


def _normalize_output_extension(ext: str) -> str:
    """Return '' (keep the entry's extension) or a dotted extension."""
    e = (ext or "").strip()
    if not e:
        return ""
    return e if e.startswith(".") else "." + e
