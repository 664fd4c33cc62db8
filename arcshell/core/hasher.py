"""Digest helpers for pinning, verification, and environment hashing.

Pinned digests are written the way the upstream flake writes them, as SRI
strings (``sha256-<base64>``). The ``sha256:<hex>`` form is accepted too.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from pathlib import Path
from typing import Any

_CHUNK_SIZE = 1 << 20


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path) -> bytes:
    """Return the raw SHA-256 digest of a file, read in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.digest()


def content_address(obj: Any) -> str:
    """Content-address a JSON-serializable object as ``sha256:<hex>``."""
    return f"sha256:{sha256_hex(canonical_json_bytes(obj))}"


def to_sri(digest: bytes) -> str:
    """Format a raw SHA-256 digest as ``sha256-<base64>``."""
    return "sha256-" + base64.b64encode(digest).decode("ascii")


def parse_digest(text: str) -> bytes:
    """Parse ``sha256-<base64>`` or ``sha256:<hex>`` into raw digest bytes.

    Raises ValueError for any other algorithm or a malformed value.
    """
    if text.startswith("sha256-"):
        try:
            digest = base64.b64decode(text.removeprefix("sha256-"), validate=True)
        except binascii.Error as exc:
            raise ValueError(f"malformed SRI digest: {text!r}") from exc
    elif text.startswith("sha256:"):
        try:
            digest = bytes.fromhex(text.removeprefix("sha256:"))
        except ValueError as exc:
            raise ValueError(f"malformed hex digest: {text!r}") from exc
    else:
        raise ValueError(f"unsupported digest (sha256 only): {text!r}")

    if len(digest) != hashlib.sha256().digest_size:
        raise ValueError(f"wrong digest length for sha256: {text!r}")
    return digest
