"""Tests for ContentAddressedStore: immutability, integrity, content addressing."""

from __future__ import annotations

import hashlib

import pytest

from recipeforge.core.artifact_store import (
    ArtifactIntegrityError,
    ContentAddressedStore,
)
from recipeforge.core.digest import DigestError

MISSING = "sha256:" + "0" * 64


class TestContentAddressedStore:
    def test_store_and_read_back(self, artifact_store: ContentAddressedStore):
        data = b"hello recipeforge"
        descriptor = artifact_store.store(data, media_type="text/plain")
        assert descriptor.digest.startswith("sha256:")
        assert descriptor.size == len(data)
        assert descriptor.media_type == "text/plain"
        with artifact_store.open(descriptor.digest) as handle:
            assert handle.read() == data

    def test_content_addressing(self, artifact_store: ContentAddressedStore):
        data = b"deterministic content"
        descriptor = artifact_store.store(data)
        assert descriptor.digest == f"sha256:{hashlib.sha256(data).hexdigest()}"

    def test_sha512_addressing(self, artifact_store: ContentAddressedStore):
        descriptor = artifact_store.store(b"longer hash", algorithm="sha512")
        assert descriptor.digest.startswith("sha512:")
        assert artifact_store.verify(descriptor.digest) is True

    def test_idempotent_store(self, artifact_store: ContentAddressedStore):
        first = artifact_store.store(b"store me twice")
        second = artifact_store.store(b"store me twice")
        assert first.digest == second.digest

    def test_exists(self, artifact_store: ContentAddressedStore):
        descriptor = artifact_store.store(b"check existence")
        assert artifact_store.exists(descriptor.digest) is True
        assert artifact_store.exists(MISSING) is False

    def test_size(self, artifact_store: ContentAddressedStore):
        descriptor = artifact_store.store(b"12345")
        assert artifact_store.size(descriptor.digest) == 5

    def test_open_streams_bytes(self, artifact_store: ContentAddressedStore):
        descriptor = artifact_store.store(b"streamed")
        with artifact_store.open(descriptor.digest) as handle:
            assert handle.read() == b"streamed"

    def test_open_nonexistent(self, artifact_store: ContentAddressedStore):
        with pytest.raises(FileNotFoundError):
            artifact_store.open(MISSING)

    def test_verify_nonexistent(self, artifact_store: ContentAddressedStore):
        assert artifact_store.verify(MISSING) is False

    def test_malformed_digest_rejected(self, artifact_store: ContentAddressedStore):
        with pytest.raises(DigestError):
            artifact_store.exists("sha256:nothex")


class TestIntegrity:
    def _corrupt(self, artifact_store: ContentAddressedStore, digest: str) -> None:
        artifact_store._blob_path(digest).write_bytes(b"tampered")

    def test_verify_detects_tampering(self, artifact_store: ContentAddressedStore):
        descriptor = artifact_store.store(b"original bytes")
        self._corrupt(artifact_store, descriptor.digest)
        assert artifact_store.verify(descriptor.digest) is False

    def test_restore_over_tampered_blob_fails(self, artifact_store: ContentAddressedStore):
        descriptor = artifact_store.store(b"original bytes")
        self._corrupt(artifact_store, descriptor.digest)
        with pytest.raises(ArtifactIntegrityError):
            artifact_store.store(b"original bytes")
