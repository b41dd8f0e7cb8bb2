"""Shared test fixtures for recipeforge."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from recipeforge.bridge.local_registry import LocalRegistry
from recipeforge.config import EngineSettings

from _doubles import RABBITMQ_TEMPLATE, FakeRegistry, FakeRepository

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def template() -> dict[str, Any]:
    """A small ARM-style template declaring one resource."""
    return json.loads(json.dumps(RABBITMQ_TEMPLATE))


@pytest.fixture
def template_bytes(template: dict[str, Any]) -> bytes:
    return json.dumps(template).encode("utf-8")


@pytest.fixture
def fake_repo(template_bytes: bytes) -> FakeRepository:
    """In-memory repository with tag ``v1`` pointing at the template."""
    repo = FakeRepository()
    repo.add_template("v1", template_bytes)
    return repo


@pytest.fixture
def fake_registry(fake_repo: FakeRepository) -> FakeRegistry:
    return FakeRegistry(fake_repo)


@pytest.fixture
def local_registry(tmp_path: Path) -> LocalRegistry:
    """Provide a fresh LocalRegistry in a temp directory."""
    return LocalRegistry(tmp_path / "registry")


@pytest.fixture
def settings() -> EngineSettings:
    """Settings with no polling delay and no deadline."""
    return EngineSettings(poll_interval_seconds=0.0, deployment_timeout_seconds=None)


@pytest.fixture
def fixed_names() -> Callable[[], str]:
    """Deterministic deployment name generator."""
    return lambda: "recipe-test-0001"


@pytest.fixture
def artifact_store(tmp_path: Path):
    """Provide a fresh ContentAddressedStore in a temp directory."""
    from recipeforge.core.artifact_store import ContentAddressedStore

    return ContentAddressedStore(tmp_path / "blobs")
