"""Blob fetcher: downloads a verified layer payload by digest."""

from __future__ import annotations

import logging
from contextlib import closing

from recipeforge.bridge.registry import Repository, read_all
from recipeforge.core.cancellation import CancellationToken
from recipeforge.errors import RecipeError, RegistryError

logger = logging.getLogger(__name__)


def fetch_blob(
    repo: Repository, digest: str, *, token: CancellationToken | None = None
) -> bytes:
    """Return the bytes of the blob addressed by ``digest``.

    Resolving the descriptor validates the digest format; ``read_all``
    verifies the bytes against it.  The stream is closed on every path.
    """
    try:
        descriptor = repo.blobs.resolve(digest)
        with closing(repo.fetch(descriptor)) as stream:
            data = read_all(stream, descriptor, token=token)
    except RecipeError:
        raise
    except Exception as exc:
        raise RegistryError(
            f"failed to fetch recipe template {digest} from registry: {exc}"
        ) from exc
    logger.debug("Fetched blob %s (%d bytes)", digest, len(data))
    return data
