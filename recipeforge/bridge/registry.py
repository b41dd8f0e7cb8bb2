"""Registry bridge: the collaborator contract the engine pulls recipes through.

Bridge boundary
---------------
The engine only needs three registry primitives, mirroring the OCI
distribution model:

    repository.resolve(tag)             -> Descriptor of the manifest
    repository.fetch(descriptor)        -> ContentStream of its bytes
    repository.blobs.resolve(digest)    -> Descriptor of a layer blob

Concrete registries live next to this module (``local_registry`` for an
on-disk store, ``oci_http`` for a remote OCI distribution endpoint).

``read_all`` is the registry layer's integrity guarantee: a stream is only
accepted when its length and digest match the descriptor it was fetched by.
Callers trust that guarantee and do not re-hash.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from recipeforge.core.cancellation import CancellationToken
from recipeforge.core.digest import DigestError, DigestVerifier
from recipeforge.models.registry import Descriptor

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class ContentIntegrityError(RuntimeError):
    """Raised when fetched content does not match its descriptor."""


class ContentNotFoundError(LookupError):
    """Raised when a tag, manifest or blob does not exist in a repository."""


@runtime_checkable
class ContentStream(Protocol):
    """A readable, closable byte stream."""

    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


class BlobStore(Protocol):
    """Blob-side view of a repository."""

    def resolve(self, digest: str) -> Descriptor:
        """Resolve a digest to a blob descriptor; rejects malformed digests."""
        ...


class Repository(Protocol):
    """A single repository inside a registry."""

    @property
    def name(self) -> str: ...

    @property
    def blobs(self) -> BlobStore: ...

    def resolve(self, reference: str) -> Descriptor:
        """Resolve a tag (or digest) to a manifest descriptor."""
        ...

    def fetch(self, descriptor: Descriptor) -> ContentStream:
        """Open the content addressed by ``descriptor``.  Caller closes."""
        ...


class RegistryClient(Protocol):
    """Factory for repository handles."""

    def repository(self, name: str) -> Repository: ...


def read_all(
    stream: ContentStream,
    descriptor: Descriptor,
    *,
    token: CancellationToken | None = None,
) -> bytes:
    """Read a stream fully and verify it against its descriptor.

    Checks the cancellation token between chunks.  Does not close the
    stream; callers own it.

    Raises
    ------
    ContentIntegrityError
        If the stream is longer or shorter than ``descriptor.size`` or its
        digest differs from ``descriptor.digest``.
    """
    try:
        verifier = DigestVerifier(descriptor.digest)
    except DigestError as exc:
        raise ContentIntegrityError(str(exc)) from exc

    chunks: list[bytes] = []
    total = 0
    while True:
        if token is not None:
            token.raise_if_cancelled()
        chunk = stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > descriptor.size:
            raise ContentIntegrityError(
                f"content for {descriptor.digest} exceeds descriptor size {descriptor.size}"
            )
        verifier.update(chunk)
        chunks.append(chunk)

    if total != descriptor.size:
        raise ContentIntegrityError(
            f"content for {descriptor.digest} is {total} bytes, expected {descriptor.size}"
        )
    if not verifier.verified():
        raise ContentIntegrityError(
            f"content digest mismatch: expected {descriptor.digest}, got {verifier.digest}"
        )
    logger.debug("read %d verified bytes for %s", total, descriptor.digest)
    return b"".join(chunks)
