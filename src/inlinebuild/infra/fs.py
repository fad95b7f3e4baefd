from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides path normalization, directory preparation and the atomic write
primitive used by the build engine. Every generated artifact goes through
`atomic_write_text` so that a reader never observes a partially written file.
"""

import os
import tempfile
from typing import Optional, Tuple

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "inlinebuild"
UNIX_APP_DIR_NAME = ".inlinebuild"
TEMP_FILE_PREFIX = ".inlinebuild-"
TEMP_FILE_SUFFIX = ".tmp"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/inlinebuild
    - Linux/Mac: ~/.inlinebuild

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        home = os.path.expanduser("~")
        path = os.path.join(home, UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a directory path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)


def resolve_under(base_dir: str, path: str) -> str:
    """
    Resolve `path` against `base_dir` unless it is already absolute.

    Args:
        base_dir: Directory used for relative paths.
        path: Absolute or relative path.

    Returns:
        str: Absolute path.
    """
    expanded = os.path.expandvars(os.path.expanduser(path))
    if os.path.isabs(expanded):
        return os.path.abspath(expanded)
    return os.path.abspath(os.path.join(base_dir, expanded))


def is_within(base_dir: str, path: str) -> bool:
    """
    Check that `path` lies strictly inside `base_dir` once both are normalized.

    `..` segments and absolute components are resolved first, so
    `<base>/../secret` is outside `<base>`.
    """
    base = os.path.abspath(base_dir)
    target = os.path.abspath(path)
    if target == base:
        return False
    try:
        return os.path.commonpath([base, target]) == base
    except ValueError:
        return False

# -----------------------------------------------------------------------------
# DIRECTORY & FILE OPERATIONS
# -----------------------------------------------------------------------------

def safe_mkdir(path: str) -> Tuple[bool, Optional[str]]:
    """
    Attempt to recursively create a directory structure safely.

    Args:
        path: Target directory path.

    Returns:
        Tuple[bool, Optional[str]]: (Success flag, Error message if applicable).
    """
    try:
        os.makedirs(path, exist_ok=True)
        return True, None
    except OSError as e:
        return False, str(e)


def atomic_write_text(path: str, content: str, encoding: str = "utf-8") -> int:
    """
    Write text to `path` through a sibling temporary file and a rename.

    The temporary file lives in the destination directory so `os.replace`
    stays on one filesystem and is atomic. On any failure the temporary file
    is removed and the previous content of `path` (if any) is left intact.

    Args:
        path: Final destination path.
        content: Text to persist.
        encoding: Text encoding used for the bytes on disk.

    Returns:
        int: Number of bytes written.

    Raises:
        OSError: If the directory is not writable or the rename fails.
    """
    directory = os.path.dirname(os.path.abspath(path)) or "."
    data = content.encode(encoding)

    fd, tmp_path = tempfile.mkstemp(
        prefix=TEMP_FILE_PREFIX,
        suffix=TEMP_FILE_SUFFIX,
        dir=directory,
    )
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise

    return len(data)


def is_temp_artifact(file_name: str) -> bool:
    """Check whether a file name belongs to an in-flight atomic write."""
    return file_name.startswith(TEMP_FILE_PREFIX) and file_name.endswith(TEMP_FILE_SUFFIX)
