from __future__ import annotations

"""
Logging Configuration Models.

Describes how the build tool logs: console output on stderr for the CLI,
and an optional rotating file that `--log-file` enables. With a path the
file goes there; without one it lands in the per-user data directory.
Console lines carry the thread name so records from the batch pool
(`BuildWorker-*`), the watch-mode pool (`IncrementalWorker-*`) and the
debounce timer can be told apart.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from inlinebuild.infra.fs import get_user_data_dir

DEFAULT_LOG_FILE_NAME: str = "inlinebuild.log"

# Mapping of string identifiers to native logging constants
_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_default_log_path(file_name: str = DEFAULT_LOG_FILE_NAME) -> str:
    """
    Resolve the standard log path within the user data directory.

    Args:
        file_name: Target log filename.

    Returns:
        str: Absolute path to the persistent log file.
    """
    return os.path.join(get_user_data_dir(), "logs", file_name)


@dataclass(frozen=True)
class LoggingConfig:
    """
    Settings applied by `configure_logging`.

    Attributes:
        level: Minimum severity level to capture.
        console: Flag to enable stderr stream output.
        log_file: Optional path of the rotating log file.
        max_bytes: Maximum size per log segment before rotation.
        backup_count: Number of historical log segments to preserve.
        console_fmt: Format of terminal lines.
        file_fmt: Format of file lines (adds the emitting module).
        datefmt: Timestamp format.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 2 * 1024 * 1024  # Default: 2MB
    backup_count: int = 3

    console_fmt: str = "[%(asctime)s] %(levelname)s | %(threadName)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def for_cli(cls, debug: bool = False, log_file: Optional[str] = None) -> "LoggingConfig":
        """
        Map the `--debug` and `--log-file` flags onto a configuration.

        Args:
            debug: Lower the threshold to DEBUG.
            log_file: None disables file logging; an empty string selects
                      `get_default_log_path()`; anything else is used as is.

        Returns:
            LoggingConfig: Console logging plus the resolved file target.
        """
        if log_file is not None and not log_file.strip():
            log_file = get_default_log_path()
        return cls(level="DEBUG" if debug else "INFO", console=True, log_file=log_file)

    @property
    def level_int(self) -> int:
        """Numeric threshold; unknown names fall back to INFO."""
        return _LEVEL_MAP.get((self.level or "").strip().upper(), logging.INFO)
