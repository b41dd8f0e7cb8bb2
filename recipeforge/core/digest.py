"""Content digest helpers (``algorithm:hex``) for registry addressing.

Digests double as addresses and integrity checks: a blob is only ever
accepted when its bytes hash to the digest it was requested by.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

SUPPORTED_ALGORITHMS: dict[str, int] = {
    "sha256": 64,
    "sha512": 128,
}

_HEX_PATTERN = re.compile(r"^[a-f0-9]+$")


class DigestError(ValueError):
    """Raised when a digest string is malformed or uses an unknown algorithm."""


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def compute_digest(data: bytes, algorithm: str = "sha256") -> str:
    """Return ``algorithm:hex`` for ``data``."""
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise DigestError(f"unsupported digest algorithm: {algorithm}")
    return f"{algorithm}:{hashlib.new(algorithm, data).hexdigest()}"


def parse_digest(digest: str) -> tuple[str, str]:
    """Split and validate a digest into ``(algorithm, hex)``.

    Raises DigestError for anything that is not a well-formed digest of a
    supported algorithm.
    """
    if not isinstance(digest, str) or ":" not in digest:
        raise DigestError(f"invalid digest: {digest!r}")
    algorithm, encoded = digest.split(":", 1)
    expected_length = SUPPORTED_ALGORITHMS.get(algorithm)
    if expected_length is None:
        raise DigestError(f"unsupported digest algorithm: {algorithm!r}")
    if len(encoded) != expected_length or not _HEX_PATTERN.match(encoded):
        raise DigestError(f"invalid {algorithm} digest: {digest!r}")
    return algorithm, encoded


def verify_digest(data: bytes, digest: str) -> bool:
    """Return True if ``data`` hashes to ``digest``."""
    algorithm, _ = parse_digest(digest)
    return compute_digest(data, algorithm) == digest


class DigestVerifier:
    """Incremental hasher for streamed content."""

    def __init__(self, digest: str) -> None:
        self._algorithm, _ = parse_digest(digest)
        self._expected = digest
        self._hash = hashlib.new(self._algorithm)

    def update(self, chunk: bytes) -> None:
        self._hash.update(chunk)

    @property
    def digest(self) -> str:
        return f"{self._algorithm}:{self._hash.hexdigest()}"

    def verified(self) -> bool:
        return self.digest == self._expected
