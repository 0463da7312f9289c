"""Deploy configuration — env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
SSRFORGE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from ssrforge.models.build import AssetOptions
from ssrforge.models.plan import InvalidationPolicy


class DeployConfig(BaseSettings):
    """Deploy configuration with environment variable overrides.

    All settings can be overridden via SSRFORGE_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export SSRFORGE_EDGE=true
        export SSRFORGE_LAYOUT=remix-classic
        export SSRFORGE_UPLOAD_CONCURRENCY=16

    Or via .env file::

        SSRFORGE_DOMAIN=my-app.com
        SSRFORGE_INVALIDATION_WAIT=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SSRFORGE_",
        env_file_encoding="utf-8",
    )

    # Runtime
    log_level: str = "INFO"
    debug: bool = False
    dev_mode: bool = False  # placeholder build metadata, nothing provisioned

    # Site
    site_path: Path = Path(".")
    layout: str = "remix-vite"
    edge: bool = False
    domain: str | None = None

    # Validation
    max_cache_behaviors: int | None = None  # CDN quota; None leaves it to the engine

    # Asset upload
    upload_concurrency: int = 8
    text_encoding: str = "utf-8"
    versioned_files_cache_header: str = "public,max-age=31536000,immutable"
    non_versioned_files_cache_header: str = (
        "public,max-age=0,s-maxage=86400,stale-while-revalidate=8640"
    )

    # Invalidation
    invalidation_paths: str = "all"  # "all" or comma-separated patterns
    invalidation_wait: bool = False
    invalidation_timeout_seconds: float = 600.0
    invalidation_poll_seconds: float = 5.0

    def asset_options(self) -> AssetOptions:
        return AssetOptions(
            text_encoding=self.text_encoding,
            versioned_files_cache_header=self.versioned_files_cache_header,
            non_versioned_files_cache_header=self.non_versioned_files_cache_header,
        )

    def invalidation_policy(self) -> InvalidationPolicy:
        """Parse ``invalidation_paths``; a blank list means ``"all"``."""
        paths = tuple(p.strip() for p in self.invalidation_paths.split(",") if p.strip())
        if not paths or paths == ("all",):
            return InvalidationPolicy(paths="all", wait=self.invalidation_wait)
        return InvalidationPolicy(paths=paths, wait=self.invalidation_wait)


# Module-level singleton: import as `from ssrforge.config import config`
config = DeployConfig()
