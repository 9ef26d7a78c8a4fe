"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers, later layers overriding earlier ones:

  1. ``config/config.yaml`` -- chunking profiles and classifier thresholds
  2. ``.env`` file / environment variables -- via :class:`Settings`

:func:`load_config` reads the YAML file first, then deep-merges the
env-derived values on top.
"""

from pathlib import Path

import yaml

from docbot_ingest.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
            the built-in chunking defaults.
        settings: Pre-built settings; constructed from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "ingestion": {
            "embedding_batch_size": settings.embedding_batch_size,
            "vector_batch_size": settings.vector_batch_size,
            "batches_per_call": settings.batches_per_call,
            "embedding_concurrency": settings.embedding_concurrency,
            "max_retries": settings.max_retries,
            "retry_initial_delay": settings.retry_initial_delay,
            "unit_timeout": settings.unit_timeout,
            "invocation_timeout": settings.invocation_timeout,
            "embedding_max_chars": settings.embedding_max_chars,
            "sample_chars": settings.sample_chars,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
