from __future__ import annotations

"""
Domain Constants.

Centralizes the static values shared by the engine, the configuration layer
and the CLI: default directory names, supported fragment types, the project
configuration file name and watcher timings.
"""

from typing import List

CURRENT_CONFIG_VERSION = "1.0.0"
PROJECT_CONFIG_FILENAME = "inlinebuild.json"

# -----------------------------------------------------------------------------
# FILESYSTEM LAYOUT
# -----------------------------------------------------------------------------
DEFAULT_FRAGMENTS_DIR = "src"
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_ENTRY_EXTENSIONS: List[str] = [".js"]

# Fragment types served by the built-in transformer registry
SUPPORTED_FRAGMENT_TYPES: List[str] = [
    "js", "css", "html", "svg", "json", "jpg", "jpeg", "png", "gif",
]

# -----------------------------------------------------------------------------
# CACHE OPERATION KEYS
# -----------------------------------------------------------------------------
BUILD_RECORD_KEY = "build"
TRANSFORM_RECORD_PREFIX = "transform:"

# -----------------------------------------------------------------------------
# WATCH MODE
# -----------------------------------------------------------------------------
DEFAULT_DEBOUNCE_MS = 100
DEFAULT_POLL_INTERVAL = 0.5
