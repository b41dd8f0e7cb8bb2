"""Template reference model: a ``repository:tag`` pointer into a registry."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TemplateReference(BaseModel):
    """A recipe template location in a content-addressable registry.

    ``repository`` is the full repository address including the registry
    host (``myregistry.example/recipes/rabbitmq``); ``tag`` names the
    manifest inside it (``v1``).
    """

    model_config = ConfigDict(frozen=True)

    repository: str = Field(min_length=1)
    tag: str = Field(min_length=1)

    @property
    def registry_host(self) -> str:
        """The registry host portion of the repository address, or ``""``."""
        if "/" not in self.repository:
            return ""
        return self.repository.split("/", 1)[0]

    @property
    def repository_path(self) -> str:
        """The repository name without the registry host."""
        if "/" not in self.repository:
            return self.repository
        return self.repository.split("/", 1)[1]

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"
