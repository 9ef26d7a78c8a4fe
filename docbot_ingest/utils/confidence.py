"""Confidence scoring utilities for chunk metadata.

Every stored chunk carries a confidence score (0.0--1.0) describing how
well-formed the chunk is as a retrieval unit.  Scores start from a
strategy-specific base and gain a bonus for each positive structural
signal (section title present, links, contact details, rich keywords,
a complete FAQ pair).

1. **additive_confidence** -- base plus the bonuses of the signals that fired,
   clamped to [0.0, 1.0].
2. **confidence_to_level** -- maps a score to a human-readable tier stored
   alongside it so vector queries can filter on a coarse level.
"""

from collections.abc import Mapping
from enum import Enum


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers."""

    LOW = "low"              # < 0.6
    MEDIUM = "medium"        # 0.6 - 0.8
    HIGH = "high"            # 0.8 - 0.9
    VERY_HIGH = "very_high"  # >= 0.9


def additive_confidence(
    base: float,
    signals: Mapping[str, bool],
    bonuses: Mapping[str, float],
) -> float:
    """Add the bonus of every signal that is ``True`` to *base*.

    Args:
        base: Starting score for the chunking strategy.
        signals: Signal name -> whether it fired for this chunk.
        bonuses: Signal name -> bonus added when it fires.  Signals with
            no configured bonus contribute nothing.

    Returns:
        The summed score clamped to [0.0, 1.0].
    """
    score = base + sum(bonuses.get(name, 0.0) for name, fired in signals.items() if fired)
    # Round away float drift (0.7 + 0.05 * 3 should read 0.85, not 0.8499999).
    return round(max(0.0, min(1.0, score)), 4)


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a :class:`ConfidenceLevel`."""
    if score < 0.6:
        return ConfidenceLevel.LOW
    if score < 0.8:
        return ConfidenceLevel.MEDIUM
    if score < 0.9:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.VERY_HIGH
