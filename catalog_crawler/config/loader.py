"""YAML configuration layer beneath environment-based :class:`Settings`.

Layers, later wins:

  1. ``Settings`` field defaults
  2. the YAML file (flat ``key: value`` mapping of Settings field names)
  3. ``.env`` and ``CATALOG_*`` environment variables

A missing YAML file is not an error; an unreadable one is.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from catalog_crawler.config.settings import Settings
from catalog_crawler.utils.errors import ConfigurationError


def load_settings(path: str | Path | None = None) -> Settings:
    """Build :class:`Settings` from an optional YAML file plus the environment."""
    env_settings = Settings()
    if path is None:
        return env_settings

    config_path = Path(path)
    if not config_path.exists():
        return env_settings

    try:
        with config_path.open(encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    known = {k: v for k, v in yaml_config.items() if k in Settings.model_fields}
    # Fields set from the environment are in model_fields_set; they must win.
    env_values = env_settings.model_dump(include=env_settings.model_fields_set)
    return Settings(**{**known, **env_values})
