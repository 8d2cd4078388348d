"""
Deterministic fingerprints for change detection.

The journal decides whether a task is up to date by comparing the
fingerprints its dependencies had when it last ran with the fingerprints
they have now. Fingerprints must therefore be stable across processes:
the same value or file state always yields the same string.

Manifesto:
    - **Deterministic:** same inputs always produce the same fingerprint
    - **Order-dependent:** ``compute_hash(a, b) != compute_hash(b, a)``
    - **Cheap for files:** file fingerprints use size and mtime, not content

Examples:
    >>> compute_hash("pass1", "mono", "cl", "regular") == compute_hash("pass1", "mono", "cl", "regular")
    True
    >>> value_fingerprint(["regular", "bold"]) == value_fingerprint(["regular", "bold"])
    True

Tags:
    hashing, change-detection, journal, fontspine

Doc-Types:
    - API Reference
"""

import hashlib
import json
from pathlib import Path
from typing import Any


def compute_hash(*values: Any, length: int = 32) -> str:
    """
    Compute deterministic hash from values.

    Values are converted to strings, joined with ``|`` and hashed with
    SHA-256.

    Args:
        *values: Values to hash (converted to strings)
        length: Hex digest length (default 32 = 128 bits)

    Returns:
        Hex string of specified length
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode()).hexdigest()[:length]


def value_fingerprint(value: Any) -> str:
    """Fingerprint a JSON-compatible value (oracle results, computed lists)."""
    return compute_hash(json.dumps(value, sort_keys=True, default=str))


def file_fingerprint(path: Path) -> str | None:
    """Fingerprint a file by size and modification time.

    Returns ``None`` if the file does not exist.
    """
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    return compute_hash("file", stat.st_size, stat.st_mtime_ns)


def content_fingerprint(paths: list[Path]) -> str:
    """Fingerprint the contents of several files, in order.

    Used for code rather than build inputs, so content is hashed even
    though it costs more than a stat.
    """
    digest = hashlib.sha256()
    for path in paths:
        digest.update(path.name.encode())
        digest.update(b"\0")
        digest.update(path.read_bytes())
    return digest.hexdigest()[:32]
