"""Content-addressed, immutable blob store backing the local registry.

Storage layout: {base_path}/{algorithm}/{hex[0:2]}/{hex[2:4]}/{hex}.dat
No delete method: blobs are immutable once stored.
"""

from __future__ import annotations

from pathlib import Path

from recipeforge.core.digest import compute_digest, parse_digest, verify_digest
from recipeforge.models.registry import OCTET_STREAM_MEDIA_TYPE, Descriptor


class ArtifactIntegrityError(RuntimeError):
    """Raised when a stored blob's hash does not match its address."""


class ContentAddressedStore:
    """Digest keyed, immutable blob store.

    Every blob is stored under its digest. Storing the same content twice is
    a no-op (idempotent). There is no update or delete.

    Parameters
    ----------
    base_path:
        Root directory for blob storage.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    def _blob_path(self, digest: str) -> Path:
        """Compute the storage path for a digest.

        Layout: {base}/{algorithm}/{hex[0:2]}/{hex[2:4]}/{hex}.dat
        """
        algorithm, encoded = parse_digest(digest)
        return self._base / algorithm / encoded[:2] / encoded[2:4] / f"{encoded}.dat"

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store(
        self,
        data: bytes,
        *,
        media_type: str = OCTET_STREAM_MEDIA_TYPE,
        algorithm: str = "sha256",
    ) -> Descriptor:
        """Store data and return a descriptor addressing it.

        If the content already exists (same digest), verifies integrity
        and returns without overwriting.
        """
        digest = compute_digest(data, algorithm)
        path = self._blob_path(digest)

        if path.exists():
            if not self.verify(digest):
                raise ArtifactIntegrityError(
                    f"Existing blob at {digest} failed integrity check"
                )
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        return Descriptor(media_type=media_type, digest=digest, size=len(data))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def open(self, digest: str):
        """Open a stored blob for streaming reads (binary file object)."""
        path = self._blob_path(digest)
        if not path.exists():
            raise FileNotFoundError(f"Blob not found: {digest}")
        return path.open("rb")

    # ------------------------------------------------------------------
    # Check and verify
    # ------------------------------------------------------------------

    def exists(self, digest: str) -> bool:
        """Check if a blob exists in the store."""
        return self._blob_path(digest).exists()

    def size(self, digest: str) -> int:
        """Size in bytes of a stored blob."""
        path = self._blob_path(digest)
        if not path.exists():
            raise FileNotFoundError(f"Blob not found: {digest}")
        return path.stat().st_size

    def verify(self, digest: str) -> bool:
        """Re-hash stored data and compare against the digest."""
        path = self._blob_path(digest)
        if not path.exists():
            return False
        return verify_digest(path.read_bytes(), digest)
