"""Shared option handling for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ssrforge.config import DeployConfig, config


def resolve_config(**overrides: Any) -> DeployConfig:
    """Apply CLI overrides (``None`` means "not given") on top of env config."""
    update = {key: value for key, value in overrides.items() if value is not None}
    if "site_path" in update:
        update["site_path"] = Path(update["site_path"])
    return config.model_copy(update=update)
