"""Configuration module -- exports Settings, load_config and ChunkingConfig."""

from docbot_ingest.config.chunking import ChunkingConfig, StrategyProfile
from docbot_ingest.config.loader import load_config
from docbot_ingest.config.settings import Settings

__all__ = ["ChunkingConfig", "Settings", "StrategyProfile", "load_config"]
