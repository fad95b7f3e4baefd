from __future__ import annotations

"""
Artifact Output Component.

Derives artifact locations from entry paths and persists generated content.
Every write is atomic: readers observe either the previous artifact or the
complete new one.
"""

import logging
import os

from inlinebuild.infra.fs import atomic_write_text

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# FILE OUTPUT MANAGEMENT
# -----------------------------------------------------------------------------

def output_path_for(entry_path: str, output_root: str, output_extension: str = "") -> str:
    """
    Compute the artifact path of an entry.

    `<output_root>/<entry base name><ext>` where `ext` is `output_extension`
    when set, else the entry's own extension.

    Args:
        entry_path: Entry file path.
        output_root: Artifact directory.
        output_extension: Dotted extension override or "".

    Returns:
        str: Absolute artifact path.
    """
    base_name, own_ext = os.path.splitext(os.path.basename(entry_path))
    ext = output_extension or own_ext
    return os.path.abspath(os.path.join(output_root, f"{base_name}{ext}"))


def write_artifact(output_path: str, content: str) -> int:
    """
    Atomically persist an assembled entry.

    The destination directory is created when missing.

    Args:
        output_path: Final artifact path.
        content: Assembled text.

    Returns:
        int: Number of bytes written.

    Raises:
        OSError: If the directory cannot be created or written.
    """
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    size = atomic_write_text(output_path, content)
    logger.debug(f"Artifact written: {output_path} ({size} bytes)")
    return size
