"""Tests for the OCI distribution HTTP client (httpx MockTransport)."""

from __future__ import annotations

from contextlib import closing

import httpx
import pytest

from recipeforge.bridge.oci_http import OciHttpRegistry, RegistryHTTPError
from recipeforge.bridge.registry import ContentNotFoundError, read_all
from recipeforge.config import EngineSettings
from recipeforge.core.blobs import fetch_blob
from recipeforge.core.digest import DigestError, canonical_json_bytes, compute_digest
from recipeforge.core.manifest import resolve_layer_digest
from recipeforge.errors import RegistryError
from recipeforge.models.registry import OCI_MANIFEST_MEDIA_TYPE, TEMPLATE_LAYER_MEDIA_TYPE

HOST = "myregistry.example"
REPO = f"{HOST}/recipes/rabbitmq"


class FakeOciServer:
    """Minimal /v2 endpoint serving one tagged template."""

    def __init__(
        self,
        template_bytes: bytes,
        *,
        send_digest_header: bool = True,
        send_content_length: bool = True,
    ) -> None:
        self.layer_digest = compute_digest(template_bytes)
        self.manifest = canonical_json_bytes(
            {
                "schemaVersion": 2,
                "mediaType": OCI_MANIFEST_MEDIA_TYPE,
                "layers": [
                    {
                        "mediaType": TEMPLATE_LAYER_MEDIA_TYPE,
                        "digest": self.layer_digest,
                        "size": len(template_bytes),
                    }
                ],
            }
        )
        self.manifest_digest = compute_digest(self.manifest)
        self.blobs = {self.layer_digest: template_bytes, self.manifest_digest: self.manifest}
        self.send_digest_header = send_digest_header
        self.send_content_length = send_content_length
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = "/v2/recipes/rabbitmq/"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404)
        kind, _, ref = path[len(prefix):].partition("/")

        if kind == "manifests":
            if ref not in ("v1", self.manifest_digest):
                return httpx.Response(404, json={"errors": [{"code": "MANIFEST_UNKNOWN"}]})
            headers = {"Content-Type": OCI_MANIFEST_MEDIA_TYPE}
            if self.send_digest_header:
                headers["Docker-Content-Digest"] = self.manifest_digest
            if request.method == "HEAD":
                if self.send_content_length:
                    headers["Content-Length"] = str(len(self.manifest))
                return httpx.Response(200, headers=headers)
            return httpx.Response(200, headers=headers, content=self.manifest)

        if kind == "blobs":
            data = self.blobs.get(ref)
            if data is None:
                return httpx.Response(404)
            if request.method == "HEAD":
                headers = {"Content-Type": "application/octet-stream"}
                if self.send_content_length:
                    headers["Content-Length"] = str(len(data))
                return httpx.Response(200, headers=headers)
            return httpx.Response(200, content=data)

        return httpx.Response(404)


def _registry(server: FakeOciServer, **settings) -> OciHttpRegistry:
    client = httpx.Client(transport=httpx.MockTransport(server))
    return OciHttpRegistry(EngineSettings(**settings), client=client)


class TestOciHttpRegistry:
    def test_resolve_tag_via_head(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        repo = _registry(server).repository(REPO)
        descriptor = repo.resolve("v1")
        assert descriptor.digest == server.manifest_digest
        assert descriptor.size == len(server.manifest)
        assert descriptor.is_manifest
        assert [r.method for r in server.requests] == ["HEAD"]
        assert OCI_MANIFEST_MEDIA_TYPE in server.requests[0].headers["Accept"]

    def test_resolve_falls_back_to_get(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes, send_digest_header=False)
        descriptor = _registry(server).repository(REPO).resolve("v1")
        assert descriptor.digest == server.manifest_digest
        assert [r.method for r in server.requests] == ["HEAD", "GET"]

    def test_resolve_without_content_length_reads_body(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes, send_content_length=False)
        descriptor = _registry(server).repository(REPO).resolve("v1")
        assert descriptor.digest == server.manifest_digest
        assert descriptor.size == len(server.manifest)
        assert [r.method for r in server.requests] == ["HEAD", "GET"]

    def test_blob_without_content_length_reads_body(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes, send_content_length=False)
        descriptor = _registry(server).repository(REPO).blobs.resolve(server.layer_digest)
        assert descriptor.size == len(template_bytes)

    def test_end_to_end_without_content_length(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes, send_content_length=False)
        repo = _registry(server).repository(REPO)
        digest = resolve_layer_digest(repo, "v1")
        assert digest == server.layer_digest
        assert fetch_blob(repo, digest) == template_bytes

    def test_https_by_default(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        repo = _registry(server).repository(REPO)
        assert repo.url("manifests/v1") == f"https://{HOST}/v2/recipes/rabbitmq/manifests/v1"

    def test_plain_http(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        repo = _registry(server, registry_plain_http=True).repository(REPO)
        assert repo.url("blobs/x").startswith(f"http://{HOST}/v2/")

    def test_bearer_token_sent(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        _registry(server, registry_token="s3cret").repository(REPO).resolve("v1")
        assert server.requests[0].headers["Authorization"] == "Bearer s3cret"

    def test_end_to_end_layer_fetch(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        repo = _registry(server).repository(REPO)
        digest = resolve_layer_digest(repo, "v1")
        assert digest == server.layer_digest
        assert fetch_blob(repo, digest) == template_bytes

    def test_streamed_fetch(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        repo = _registry(server).repository(REPO)
        descriptor = repo.blobs.resolve(server.layer_digest)
        with closing(repo.fetch(descriptor)) as stream:
            assert read_all(stream, descriptor) == template_bytes
        assert server.requests[-1].url.path.endswith(f"blobs/{server.layer_digest}")

    def test_unknown_tag(self, template_bytes: bytes):
        repo = _registry(FakeOciServer(template_bytes)).repository(REPO)
        with pytest.raises(ContentNotFoundError):
            repo.resolve("v9")

    def test_missing_blob_through_fetcher(self, template_bytes: bytes):
        repo = _registry(FakeOciServer(template_bytes)).repository(REPO)
        with pytest.raises(RegistryError, match="failed to fetch recipe template"):
            fetch_blob(repo, "sha256:" + "d" * 64)

    def test_malformed_digest_never_sent(self, template_bytes: bytes):
        server = FakeOciServer(template_bytes)
        repo = _registry(server).repository(REPO)
        with pytest.raises(DigestError):
            repo.blobs.resolve("sha256:short")
        assert server.requests == []

    def test_server_error(self, template_bytes: bytes):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        client = httpx.Client(transport=httpx.MockTransport(handler))
        repo = OciHttpRegistry(EngineSettings(), client=client).repository(REPO)
        with pytest.raises(RegistryHTTPError) as exc_info:
            repo.resolve("v1")
        assert exc_info.value.status_code == 503

    def test_repository_needs_host(self):
        registry = OciHttpRegistry(EngineSettings(), client=httpx.Client())
        with pytest.raises(ValueError, match="registry host"):
            registry.repository("rabbitmq")

    def test_context_manager_closes_client(self):
        client = httpx.Client()
        with OciHttpRegistry(EngineSettings(), client=client):
            pass
        assert client.is_closed
