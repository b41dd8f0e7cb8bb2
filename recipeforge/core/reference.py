"""Artifact locator: parses ``repository:tag`` template references."""

from __future__ import annotations

import re

from recipeforge.errors import InvalidReferenceError
from recipeforge.models.reference import TemplateReference

# OCI distribution tag grammar.
_TAG_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]{0,127}$")


def parse_reference(value: str) -> TemplateReference:
    """Split a template reference on its first colon.

    ``myregistry.example/recipes/rabbitmq:v1`` gives repository
    ``myregistry.example/recipes/rabbitmq`` and tag ``v1``.

    References whose registry host carries a port
    (``host:5000/recipes/rabbitmq:v1``) cannot be split on the first colon
    without guessing, so they are rejected rather than reinterpreted, as are
    digest references (``repo@sha256:...``).
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidReferenceError("template reference cannot be empty")

    reference = value.strip()
    if ":" not in reference:
        raise InvalidReferenceError(
            f"template reference {reference!r} must have the form repository:tag"
        )

    repository, tag = reference.split(":", 1)
    if not repository or not tag:
        raise InvalidReferenceError(
            f"template reference {reference!r} must have a non-empty repository and tag"
        )
    if "/" in tag or ":" in tag:
        raise InvalidReferenceError(
            f"template reference {reference!r} is ambiguous: registry ports and "
            "extra colons are not supported"
        )
    if "@" in repository:
        raise InvalidReferenceError(
            f"template reference {reference!r} uses a digest; a tag is required"
        )
    if not _TAG_PATTERN.match(tag):
        raise InvalidReferenceError(f"invalid tag {tag!r} in template reference")

    return TemplateReference(repository=repository, tag=tag)
