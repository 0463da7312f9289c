"""Canonical hashing helpers for plan fingerprints and asset content addresses.

Two plans that serialize to the same canonical JSON are the same plan, so
the fingerprint is a stable identity across deploys and processes.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_address(obj: Any) -> str:
    """Content-address a JSON-serializable object as ``"sha256:<hex>"``."""
    return f"sha256:{sha256_hex(canonical_json_bytes(obj))}"


def bytes_address(data: bytes) -> str:
    """Content-address raw bytes as ``"sha256:<hex>"``."""
    return f"sha256:{sha256_hex(data)}"


def compute_stage_hash(stage_id: str, payload: dict[str, Any]) -> str:
    """SHA-256 of canonical(stage_id + payload).

    Recorded per deploy stage so two deploys with identical inputs can be
    recognised as such.
    """
    return sha256_hex(canonical_json_bytes({"stage_id": stage_id, "payload": payload}))
