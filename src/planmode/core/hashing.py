"""Content hashing used for drift and conflict detection.

Hashes are Subresource-Integrity style strings, ``sha256:<64-hex-chars>``,
computed over the UTF-8 encoding of the installed text.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

HASH_ALGORITHM: str = "sha256"


def compute_content_hash(content: str | bytes) -> str:
    """Compute the SHA-256 content hash of package text.

    Args:
        content: Package content, as string or bytes.

    Returns:
        Hash string in "sha256:<64-hex-chars>" format.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    digest = hashlib.sha256(content).hexdigest()
    return f"{HASH_ALGORITHM}:{digest}"


def hash_file(path: Path) -> str:
    """Hash the raw bytes of a file on disk.

    Bytes are hashed as stored, so line endings are not normalised.
    """
    return compute_content_hash(path.read_bytes())

