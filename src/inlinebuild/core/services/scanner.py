from __future__ import annotations

"""
File Discovery Service.

Enumerates the entries of a project (a flat directory filtered by
extension) and the fragment tree (`<type>/<name>.<type>`), and maps fragment
paths back to the (type, name) reference that would resolve to them.
"""

import logging
import os
from typing import Iterable, List, Optional, Sequence, Tuple

from inlinebuild.infra.fs import is_temp_artifact

logger = logging.getLogger(__name__)


# ==============================================================================
# PUBLIC API (DISCOVERY SERVICES)
# ==============================================================================

def yield_entry_files(entries_root: str, extensions: Sequence[str]) -> Iterable[str]:
    """
    Yield the entries found directly inside `entries_root`.

    Subdirectories are not traversed. Hidden files and in-flight atomic
    write artifacts are ignored. Matching is case-insensitive on the
    extension.

    Args:
        entries_root: Directory holding the entries.
        extensions: Accepted dotted extensions, e.g. [".js"].

    Yields:
        str: Absolute entry paths in name order.
    """
    root = os.path.abspath(entries_root)
    wanted = {e.lower() for e in extensions}

    try:
        names = sorted(os.listdir(root))
    except OSError as e:
        logger.error(f"Scanner: Cannot list entries in {root}: {e}")
        return

    for file_name in names:
        if file_name.startswith(".") or is_temp_artifact(file_name):
            continue
        path = os.path.join(root, file_name)
        if not os.path.isfile(path):
            continue
        if os.path.splitext(file_name)[1].lower() in wanted:
            yield path


def list_entry_files(entries_root: str, extensions: Sequence[str]) -> List[str]:
    return list(yield_entry_files(entries_root, extensions))


def yield_fragment_files(fragments_root: str) -> Iterable[str]:
    """
    Walk the fragment tree and yield every candidate fragment file.

    Hidden directories and files are pruned.

    Yields:
        str: Absolute fragment paths in a stable order.
    """
    root = os.path.abspath(fragments_root)
    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for file_name in sorted(files):
            if file_name.startswith(".") or is_temp_artifact(file_name):
                continue
            yield os.path.join(current, file_name)


def classify_fragment(path: str, fragments_root: str) -> Optional[Tuple[str, str]]:
    """
    Map a fragment path to its placeholder reference.

    `<root>/css/theme.css` -> ("css", "theme"); nested names keep forward
    slashes: `<root>/svg/icons/close.svg` -> ("svg", "icons/close").

    Returns:
        Optional[Tuple[str, str]]: (type, name), or None when the path is not
                                   laid out as a fragment.
    """
    rel = os.path.relpath(os.path.abspath(path), os.path.abspath(fragments_root))
    parts = rel.split(os.sep)
    if len(parts) < 2 or parts[0] in (os.curdir, os.pardir):
        return None

    fragment_type = parts[0]
    stem, ext = os.path.splitext("/".join(parts[1:]))
    if not stem or ext != f".{fragment_type}":
        return None
    return fragment_type, stem
