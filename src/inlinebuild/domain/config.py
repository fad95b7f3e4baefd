from __future__ import annotations

"""
Configuration Domain Management.

Defines the default build configuration and its persistence as an optional
`inlinebuild.json` file in the project working directory. The dictionary
produced here is normalized by the validator stage before reaching the
engine.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from inlinebuild.domain.constants import (
    CURRENT_CONFIG_VERSION,
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_ENTRY_EXTENSIONS,
    DEFAULT_FRAGMENTS_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_POLL_INTERVAL,
    PROJECT_CONFIG_FILENAME,
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Relative directory values are resolved against `working_dir` by the
    validator. An empty `entries_dir` means the working directory itself.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Layout
        "working_dir": os.getcwd(),
        "entries_dir": "",
        "fragments_dir": DEFAULT_FRAGMENTS_DIR,
        "output_dir": DEFAULT_OUTPUT_DIR,
        "entry_extensions": list(DEFAULT_ENTRY_EXTENSIONS),
        "output_extension": "",

        # Engine
        "max_workers": 0,
        "strict_fragments": True,
        "memoize_transforms": True,
        "minify_output": False,

        # Watch mode
        "debounce_ms": DEFAULT_DEBOUNCE_MS,
        "poll_interval": DEFAULT_POLL_INTERVAL,

        # Transformers
        "css_minify": True,
        "html_minify": True,
        "html_remove_comments": True,
        "svg_remove_metadata": True,
        "json_pretty_print": False,
        "js_debug_comments": False,
        "js_separators": False,
        "jpg_mime_type": "image/jpeg",
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def get_project_config_path(working_dir: str) -> str:
    """Location of the project configuration file for `working_dir`."""
    return os.path.join(os.path.abspath(working_dir), PROJECT_CONFIG_FILENAME)


def load_config(working_dir: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the project configuration merged over the defaults.

    A missing file yields the defaults. A corrupted file is reported and
    ignored so that a broken settings file never blocks a build.

    Args:
        working_dir: Project directory. Defaults to the current directory.

    Returns:
        Dict[str, Any]: The merged (not yet validated) configuration.
    """
    config = get_default_config()
    base = os.path.abspath(working_dir or os.getcwd())
    config["working_dir"] = base

    path = get_project_config_path(base)
    if not os.path.exists(path):
        logger.debug(f"No project config at {path}. Using defaults.")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load project config {path}: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning(f"Corrupted project config {path}. Using defaults.")
        return config

    data.pop("version", None)
    # The file never relocates its own project
    data.pop("working_dir", None)
    config.update(data)
    return config


def save_config(config: Dict[str, Any], working_dir: Optional[str] = None) -> str:
    """
    Persist a configuration to the project configuration file.

    Args:
        config: The configuration to save (working_dir is not stored).
        working_dir: Project directory; defaults to `config["working_dir"]`.

    Returns:
        str: Path of the written file.

    Raises:
        OSError: If the file cannot be written.
    """
    base = working_dir or config.get("working_dir") or os.getcwd()
    path = get_project_config_path(base)

    payload = {k: v for k, v in config.items() if k != "working_dir"}
    payload["version"] = CURRENT_CONFIG_VERSION

    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=4, sort_keys=True)
    logger.debug(f"Configuration saved to {path}")
    return path
