from __future__ import annotations

"""
Entry Reading Component.

Loads an entry exactly once per build attempt. The same bytes are both
fingerprinted and decoded, so the fingerprint committed after a successful
build always describes the content that was actually assembled, even if the
file is edited while the build is running.
"""

from dataclasses import dataclass

from inlinebuild.core.services.cache import fingerprint_bytes

# -----------------------------------------------------------------------------
# READ OPERATIONS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SourceSnapshot:
    """Content of an entry as observed at one instant."""
    path: str
    text: str
    fingerprint: str


def read_source(file_path: str, encoding: str = "utf-8") -> SourceSnapshot:
    """
    Read, fingerprint and decode a source file.

    Decoding is strict: an entry with undecodable bytes must fail instead of
    producing an artifact with replacement characters.

    Args:
        file_path: Absolute path to the entry.
        encoding: Text encoding of the entry.

    Returns:
        SourceSnapshot: Decoded text plus the fingerprint of the raw bytes.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the bytes are not valid in `encoding`.
    """
    with open(file_path, "rb") as f:
        data = f.read()
    return SourceSnapshot(
        path=file_path,
        text=data.decode(encoding),
        fingerprint=fingerprint_bytes(data),
    )
