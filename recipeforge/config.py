"""Engine settings: env-driven via pydantic-settings.

Reads from a .env file and RECIPEFORGE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Runtime settings for the recipe deployment engine and its collaborators.

    Examples
    --------
    Override via environment::

        export RECIPEFORGE_LOG_LEVEL=DEBUG
        export RECIPEFORGE_DEPLOYMENT_TIMEOUT_SECONDS=900
        export RECIPEFORGE_REGISTRY_PLAIN_HTTP=true

    Or via .env file::

        RECIPEFORGE_ARM_TOKEN=eyJ0eXAi...
        RECIPEFORGE_DEPLOYMENT_NAME_STRATEGY=uuid
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RECIPEFORGE_",
        env_file_encoding="utf-8",
    )

    # Logging
    log_level: str = "INFO"

    # Deployment naming and waiting
    deployment_name_prefix: str = "recipe"
    deployment_name_strategy: Literal["timestamp", "uuid"] = "timestamp"
    poll_interval_seconds: float = 5.0
    deployment_timeout_seconds: float | None = None  # None = wait until terminal

    # OCI registry
    registry_plain_http: bool = False
    registry_token: str = ""
    registry_timeout_seconds: float = 30.0
    local_registry_path: Path = Path(".recipeforge/registry")

    # Azure Resource Manager
    arm_endpoint: str = "https://management.azure.com"
    arm_api_version: str = "2021-04-01"
    arm_token: str = ""  # credential acquisition happens outside this package
    arm_timeout_seconds: float = 60.0


# Module-level singleton: import as `from recipeforge.config import settings`
settings = EngineSettings()
