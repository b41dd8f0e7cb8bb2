"""Registry descriptor models (OCI content descriptors)."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Media types
OCI_MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"
DOCKER_MANIFEST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v2+json"
OCI_EMPTY_CONFIG_MEDIA_TYPE = "application/vnd.oci.empty.v1+json"
TEMPLATE_LAYER_MEDIA_TYPE = "application/vnd.recipeforge.template.v1+json"
OCTET_STREAM_MEDIA_TYPE = "application/octet-stream"

MANIFEST_MEDIA_TYPES = (OCI_MANIFEST_MEDIA_TYPE, DOCKER_MANIFEST_MEDIA_TYPE)

_DIGEST_PATTERN = re.compile(r"^[a-z0-9]+(?:[+._-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$")


class Descriptor(BaseModel):
    """Addresses a piece of registry content by digest.

    Used both for manifests (resolved from a tag) and for blobs (resolved
    from a layer digest).  Immutable once resolved.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    media_type: str = Field(default=OCTET_STREAM_MEDIA_TYPE, alias="mediaType")
    digest: str  # "algorithm:hex"
    size: int = Field(ge=0)

    @field_validator("digest")
    @classmethod
    def _check_digest(cls, value: str) -> str:
        if not _DIGEST_PATTERN.match(value):
            raise ValueError(f"invalid digest format: {value!r}")
        return value

    @property
    def is_manifest(self) -> bool:
        return self.media_type in MANIFEST_MEDIA_TYPES

    def to_oci(self) -> dict[str, object]:
        """Render as an OCI descriptor JSON object."""
        return {"mediaType": self.media_type, "digest": self.digest, "size": self.size}
