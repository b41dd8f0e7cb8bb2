"""OCI distribution registry over HTTP (httpx).

Implements only the calls the engine needs:

    HEAD /v2/<name>/manifests/<tag>      resolve a tag
    GET  /v2/<name>/manifests/<digest>   fetch a manifest
    HEAD /v2/<name>/blobs/<digest>       resolve a blob
    GET  /v2/<name>/blobs/<digest>       fetch a blob

Response bodies are streamed; the returned stream releases the connection
on ``close()``.  Authentication is a pre-acquired bearer token from
settings; token exchange is outside this package.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import httpx

from recipeforge.bridge.registry import ContentNotFoundError
from recipeforge.config import EngineSettings
from recipeforge.core.digest import compute_digest, parse_digest
from recipeforge.models.registry import (
    MANIFEST_MEDIA_TYPES,
    OCI_MANIFEST_MEDIA_TYPE,
    OCTET_STREAM_MEDIA_TYPE,
    Descriptor,
)

logger = logging.getLogger(__name__)

_MANIFEST_ACCEPT = ", ".join(MANIFEST_MEDIA_TYPES)


class RegistryHTTPError(RuntimeError):
    """Raised when the registry answers with an unexpected HTTP status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"registry HTTP {status_code}: {message}")
        self.status_code = status_code


class ResponseStream:
    """Adapts a streamed httpx response to ``read(size)`` / ``close()``."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._chunks: Iterator[bytes] = response.iter_bytes()
        self._buffer = b""

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            data = self._buffer + b"".join(self._chunks)
            self._buffer = b""
            return data
        while len(self._buffer) < size:
            try:
                self._buffer += next(self._chunks)
            except StopIteration:
                break
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def close(self) -> None:
        self._response.close()


def _content_length(response: httpx.Response) -> int | None:
    """Declared body size, or None when the header is absent or unusable."""
    value = response.headers.get("Content-Length")
    if value is None or not value.strip().isdigit():
        return None
    return int(value)


def _check_response(response: httpx.Response, what: str) -> None:
    if response.status_code == 404:
        raise ContentNotFoundError(f"{what} not found")
    if response.status_code >= 400:
        raise RegistryHTTPError(response.status_code, what)


class OciBlobStore:
    """Blob view of an ``OciHttpRepository``."""

    def __init__(self, repository: "OciHttpRepository") -> None:
        self._repository = repository

    def resolve(self, digest: str) -> Descriptor:
        """Describe a blob; GETs it when HEAD carries no ``Content-Length``."""
        parse_digest(digest)
        response = self._repository.request("HEAD", f"blobs/{digest}")
        _check_response(response, f"blob {digest}")
        media_type = response.headers.get("Content-Type", OCTET_STREAM_MEDIA_TYPE)
        size = _content_length(response)
        if size is None:
            response = self._repository.request("GET", f"blobs/{digest}")
            _check_response(response, f"blob {digest}")
            size = len(response.content)
        return Descriptor(media_type=media_type, digest=digest, size=size)


class OciHttpRepository:
    """One repository on a remote OCI distribution registry."""

    def __init__(self, client: httpx.Client, base_url: str, path: str, name: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._path = path
        self._name = name
        self._blobs = OciBlobStore(self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def blobs(self) -> OciBlobStore:
        return self._blobs

    def url(self, suffix: str) -> str:
        return f"{self._base_url}/v2/{self._path}/{suffix}"

    def request(self, method: str, suffix: str, **kwargs) -> httpx.Response:
        url = self.url(suffix)
        response = self._client.request(method, url, **kwargs)
        logger.debug("registry %s %s -> %s", method, url, response.status_code)
        return response

    def resolve(self, reference: str) -> Descriptor:
        """Resolve a tag to its manifest descriptor.

        Falls back to GET when the registry omits ``Docker-Content-Digest``
        or ``Content-Length`` on HEAD, taking both from the body instead.
        """
        headers = {"Accept": _MANIFEST_ACCEPT}
        response = self.request("HEAD", f"manifests/{reference}", headers=headers)
        _check_response(response, f"manifest {self._name}:{reference}")
        media_type = response.headers.get("Content-Type", OCI_MANIFEST_MEDIA_TYPE)
        digest = response.headers.get("Docker-Content-Digest")
        size = _content_length(response)
        if digest and size is not None:
            return Descriptor(media_type=media_type, digest=digest, size=size)

        response = self.request("GET", f"manifests/{reference}", headers=headers)
        _check_response(response, f"manifest {self._name}:{reference}")
        return Descriptor(
            media_type=response.headers.get("Content-Type", media_type),
            digest=compute_digest(response.content),
            size=len(response.content),
        )

    def fetch(self, descriptor: Descriptor) -> ResponseStream:
        """Stream the manifest or blob addressed by ``descriptor``."""
        if descriptor.is_manifest:
            suffix = f"manifests/{descriptor.digest}"
            headers = {"Accept": descriptor.media_type}
        else:
            suffix = f"blobs/{descriptor.digest}"
            headers = {}
        request = self._client.build_request("GET", self.url(suffix), headers=headers)
        response = self._client.send(request, stream=True)
        try:
            _check_response(response, f"content {descriptor.digest}")
        except Exception:
            response.close()
            raise
        return ResponseStream(response)


class OciHttpRegistry:
    """Client for OCI distribution registries.

    Parameters
    ----------
    settings:
        Supplies ``registry_plain_http``, ``registry_token`` and
        ``registry_timeout_seconds``.
    client:
        Pre-built httpx client (tests pass one with a MockTransport).
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        headers = {}
        if self._settings.registry_token:
            headers["Authorization"] = f"Bearer {self._settings.registry_token}"
        self._client = client or httpx.Client(
            timeout=self._settings.registry_timeout_seconds,
            follow_redirects=True,
        )
        self._client.headers.update(headers)

    def repository(self, name: str) -> OciHttpRepository:
        """Handle for ``host/path/to/repo``."""
        if "/" not in name:
            raise ValueError(f"repository {name!r} must include a registry host")
        host, path = name.split("/", 1)
        if not host or not path:
            raise ValueError(f"repository {name!r} must include a registry host and path")
        scheme = "http" if self._settings.registry_plain_http else "https"
        return OciHttpRepository(self._client, f"{scheme}://{host}", path, name)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OciHttpRegistry":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
