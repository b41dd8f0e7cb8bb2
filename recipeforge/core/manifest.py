"""Manifest resolver: tag -> manifest -> digest of the first content layer."""

from __future__ import annotations

import json
import logging
from contextlib import closing
from typing import Any

from recipeforge.bridge.registry import Repository, read_all
from recipeforge.core.cancellation import CancellationToken
from recipeforge.errors import ManifestDecodeError, RecipeError, RegistryError

logger = logging.getLogger(__name__)


def fetch_manifest(
    repo: Repository, tag: str, *, token: CancellationToken | None = None
) -> bytes:
    """Resolve ``tag`` and return the verified manifest bytes.

    The content stream is closed on every exit path.
    """
    try:
        descriptor = repo.resolve(tag)
        with closing(repo.fetch(descriptor)) as stream:
            data = read_all(stream, descriptor, token=token)
    except RecipeError:
        raise
    except Exception as exc:
        raise RegistryError(
            f"failed to fetch recipe manifest {repo.name}:{tag} from registry: {exc}"
        ) from exc
    logger.debug("Fetched manifest %s:%s (%s)", repo.name, tag, descriptor.digest)
    return data


def decode_layer_digest(manifest_bytes: bytes) -> str:
    """Return the ``digest`` of the first entry in a manifest's ``layers``.

    Raises ManifestDecodeError when the manifest is not a JSON object, has no
    layers, or its first layer has no string digest.
    """
    try:
        manifest: Any = json.loads(manifest_bytes)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestDecodeError(f"manifest is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise ManifestDecodeError("manifest is nested too deeply to decode") from exc
    if not isinstance(manifest, dict):
        raise ManifestDecodeError("manifest is not a JSON object")

    layers = manifest.get("layers")
    if not isinstance(layers, list) or not layers:
        raise ManifestDecodeError("failed to decode the layers from manifest")

    layer = layers[0]
    if not isinstance(layer, dict):
        raise ManifestDecodeError("failed to decode the layers from manifest")

    digest = layer.get("digest")
    if not isinstance(digest, str) or not digest:
        raise ManifestDecodeError("failed to decode the layers digest from manifest")
    return digest


def resolve_layer_digest(
    repo: Repository, tag: str, *, token: CancellationToken | None = None
) -> str:
    """Resolve ``tag`` in ``repo`` to the digest of the recipe template layer."""
    digest = decode_layer_digest(fetch_manifest(repo, tag, token=token))
    logger.info("Resolved %s:%s to layer %s", repo.name, tag, digest)
    return digest
