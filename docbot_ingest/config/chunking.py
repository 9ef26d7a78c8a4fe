"""Chunking and classification tunables.

The ``chunking`` section of ``config/config.yaml`` is validated into a
:class:`ChunkingConfig`.  Each strategy has a :class:`StrategyProfile`;
namespaces may override any profile field, e.g.::

    chunking:
      manual: {max_chunk_size: 2000, target_chunk_size: 1200, overlap: 150}
      namespaces:
        hr-policies:
          standard: {min_chunk_size: 150}

The thresholds are heuristics; none of them is load-bearing beyond the
chunk-size bound (every unit fed to a chunk is at most
``target_chunk_size`` and ``target_chunk_size + overlap < max_chunk_size``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StrategyProfile(BaseModel):
    """Size parameters for one chunking strategy."""

    model_config = ConfigDict(frozen=True)

    max_chunk_size: int = Field(default=2500, ge=100)
    target_chunk_size: int = Field(default=1500, ge=50)
    overlap: int = Field(default=200, ge=0)
    min_chunk_size: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> StrategyProfile:
        # A split piece is at most target + overlap + a two-char paragraph joiner.
        if self.target_chunk_size + self.overlap + 2 > self.max_chunk_size:
            raise ValueError("target_chunk_size + overlap must be below max_chunk_size")
        if self.min_chunk_size >= self.target_chunk_size:
            raise ValueError("min_chunk_size must be below target_chunk_size")
        return self


class ClassifierThresholds(BaseModel):
    """Thresholds used by the structure classifier."""

    model_config = ConfigDict(frozen=True)

    faq_min_matches: int = 3
    glossary_min_paragraphs: int = 5
    glossary_max_avg_paragraph: int = 500
    manual_min_pages: int = 100


class HeadingRules(BaseModel):
    """Lexical heading heuristic used by the glossary pairer."""

    model_config = ConfigDict(frozen=True)

    max_heading_length: int = 80


class ChunkingConfig(BaseModel):
    """All chunking tunables, with optional per-namespace overrides."""

    model_config = ConfigDict(frozen=True)

    classifier: ClassifierThresholds = Field(default_factory=ClassifierThresholds)
    headings: HeadingRules = Field(default_factory=HeadingRules)
    faq: StrategyProfile = Field(
        default_factory=lambda: StrategyProfile(
            max_chunk_size=4000, target_chunk_size=1500, overlap=0, min_chunk_size=10
        )
    )
    glossary: StrategyProfile = Field(
        default_factory=lambda: StrategyProfile(
            max_chunk_size=2500, target_chunk_size=1500, overlap=0, min_chunk_size=40
        )
    )
    manual: StrategyProfile = Field(
        default_factory=lambda: StrategyProfile(
            max_chunk_size=2000, target_chunk_size=1200, overlap=150, min_chunk_size=200
        )
    )
    standard: StrategyProfile = Field(
        default_factory=lambda: StrategyProfile(
            max_chunk_size=2500, target_chunk_size=1500, overlap=200, min_chunk_size=100
        )
    )
    namespaces: dict[str, dict[str, dict[str, Any]]] = Field(default_factory=dict)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> ChunkingConfig:
        """Build from the ``chunking`` section of a loaded config dict."""
        return cls.model_validate(config.get("chunking") or {})

    def for_namespace(self, namespace: str | None) -> ChunkingConfig:
        """Return a copy with *namespace*'s profile overrides applied."""
        overrides = self.namespaces.get(namespace or "")
        if not overrides:
            return self
        update: dict[str, Any] = {}
        for name, fields in overrides.items():
            current = getattr(self, name, None)
            if isinstance(current, BaseModel):
                update[name] = type(current).model_validate(
                    {**current.model_dump(), **fields}
                )
        return self.model_copy(update=update)
