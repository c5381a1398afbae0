"""Canonical hashing helpers for event payloads and the journal chain.

Canonical JSON keeps hashes stable across processes: sorted keys, compact
separators, ASCII only.
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


def compute_payload_hash(payload: dict[str, Any]) -> str:
    """SHA-256 of an event's content fields (identity and timing excluded)."""
    return sha256_hex(canonical_json_bytes(payload))


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """SHA-256 of a journal entry (excluding the entry_hash field itself).

    This is the seal that makes each entry tamper-evident.
    """
    d = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    return sha256_hex(canonical_json_bytes(d))


def derive_address(label: str) -> str:
    """Derive a deterministic ``0x``-prefixed 20-byte address from a label.

    >>> derive_address("deployer") == derive_address("deployer")
    True
    """
    return "0x" + sha256_hex(label.encode("utf-8"))[:40]
