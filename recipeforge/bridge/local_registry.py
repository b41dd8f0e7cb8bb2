"""On-disk registry: recipe templates in a local content-addressed store.

Layout under ``base_path``::

    blobs/{algorithm}/{hex[0:2]}/{hex[2:4]}/{hex}.dat   manifests and layers
    repositories/{quoted repository name}/tags.json     tag -> manifest descriptor

Used by the CLI ``push`` command and as the default registry for local
deployments.  Implements the ``RegistryClient`` / ``Repository`` contract
from ``recipeforge.bridge.registry``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

from recipeforge.bridge.registry import ContentNotFoundError
from recipeforge.core.artifact_store import ContentAddressedStore
from recipeforge.core.digest import canonical_json_bytes, parse_digest
from recipeforge.models.registry import (
    OCI_EMPTY_CONFIG_MEDIA_TYPE,
    OCI_MANIFEST_MEDIA_TYPE,
    OCTET_STREAM_MEDIA_TYPE,
    TEMPLATE_LAYER_MEDIA_TYPE,
    Descriptor,
)

logger = logging.getLogger(__name__)

_EMPTY_CONFIG = b"{}"


class LocalBlobStore:
    """Blob view of a local repository."""

    def __init__(self, store: ContentAddressedStore) -> None:
        self._store = store

    def resolve(self, digest: str) -> Descriptor:
        parse_digest(digest)
        if not self._store.exists(digest):
            raise ContentNotFoundError(f"blob {digest} not found")
        return Descriptor(
            media_type=OCTET_STREAM_MEDIA_TYPE, digest=digest, size=self._store.size(digest)
        )


class LocalRepository:
    """A repository in a ``LocalRegistry``."""

    def __init__(self, name: str, store: ContentAddressedStore, tags_path: Path) -> None:
        self._name = name
        self._store = store
        self._tags_path = tags_path
        self._blobs = LocalBlobStore(store)

    @property
    def name(self) -> str:
        return self._name

    @property
    def blobs(self) -> LocalBlobStore:
        return self._blobs

    def tags(self) -> dict[str, Descriptor]:
        if not self._tags_path.exists():
            return {}
        raw = json.loads(self._tags_path.read_text(encoding="utf-8"))
        return {tag: Descriptor.model_validate(value) for tag, value in raw.items()}

    def resolve(self, reference: str) -> Descriptor:
        """Resolve a tag, or a manifest digest, to a manifest descriptor."""
        if ":" in reference:
            parse_digest(reference)
            if not self._store.exists(reference):
                raise ContentNotFoundError(f"manifest {reference} not found in {self._name}")
            return Descriptor(
                media_type=OCI_MANIFEST_MEDIA_TYPE,
                digest=reference,
                size=self._store.size(reference),
            )
        descriptor = self.tags().get(reference)
        if descriptor is None:
            raise ContentNotFoundError(f"tag {reference} not found in {self._name}")
        return descriptor

    def fetch(self, descriptor: Descriptor):
        """Open the stored bytes for ``descriptor`` (binary file object)."""
        try:
            return self._store.open(descriptor.digest)
        except FileNotFoundError as exc:
            raise ContentNotFoundError(str(exc)) from exc

    def tag(self, tag: str, descriptor: Descriptor) -> None:
        tags = {name: value.model_dump(by_alias=True) for name, value in self.tags().items()}
        tags[tag] = descriptor.model_dump(by_alias=True)
        self._tags_path.parent.mkdir(parents=True, exist_ok=True)
        self._tags_path.write_text(json.dumps(tags, indent=2, sort_keys=True), encoding="utf-8")


class LocalRegistry:
    """A directory-backed registry holding recipe templates.

    Parameters
    ----------
    base_path:
        Root directory for blobs and tag indexes.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._store = ContentAddressedStore(self._base / "blobs")

    @property
    def store(self) -> ContentAddressedStore:
        return self._store

    def repository(self, name: str) -> LocalRepository:
        if not name:
            raise ValueError("repository name cannot be empty")
        tags_path = self._base / "repositories" / quote(name, safe="") / "tags.json"
        return LocalRepository(name, self._store, tags_path)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def push_manifest(self, repository: str, tag: str, manifest: dict[str, Any]) -> Descriptor:
        """Store a manifest document as-is and point ``tag`` at it."""
        descriptor = self._store.store(
            canonical_json_bytes(manifest), media_type=OCI_MANIFEST_MEDIA_TYPE
        )
        self.repository(repository).tag(tag, descriptor)
        logger.info("Tagged %s:%s -> %s", repository, tag, descriptor.digest)
        return descriptor

    def push_template(
        self,
        repository: str,
        tag: str,
        data: bytes,
        *,
        media_type: str = TEMPLATE_LAYER_MEDIA_TYPE,
        annotations: dict[str, str] | None = None,
    ) -> Descriptor:
        """Publish a template as a single-layer OCI artifact.

        Returns the manifest descriptor now referenced by ``tag``.
        """
        layer = self._store.store(data, media_type=media_type)
        config = self._store.store(_EMPTY_CONFIG, media_type=OCI_EMPTY_CONFIG_MEDIA_TYPE)
        manifest: dict[str, Any] = {
            "schemaVersion": 2,
            "mediaType": OCI_MANIFEST_MEDIA_TYPE,
            "config": config.to_oci(),
            "layers": [layer.to_oci()],
        }
        if annotations:
            manifest["annotations"] = dict(annotations)
        return self.push_manifest(repository, tag, manifest)
