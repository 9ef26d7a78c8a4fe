"""Unit tests for confidence scoring utilities."""

from __future__ import annotations

import pytest

from docbot_ingest.utils.confidence import (
    ConfidenceLevel,
    additive_confidence,
    confidence_to_level,
)

_BONUSES = {"has_links": 0.05, "has_section_title": 0.05, "complete_faq": 0.1}


class TestAdditiveConfidence:
    def test_only_fired_signals_count(self) -> None:
        score = additive_confidence(
            0.7, {"has_links": True, "has_section_title": False}, _BONUSES
        )
        assert score == pytest.approx(0.75)

    def test_unknown_signals_contribute_nothing(self) -> None:
        assert additive_confidence(0.7, {"mystery": True}, _BONUSES) == pytest.approx(0.7)

    def test_float_drift_is_rounded(self) -> None:
        signals = {"has_links": True, "has_section_title": True, "extra": True}
        bonuses = {**_BONUSES, "extra": 0.05}
        assert additive_confidence(0.7, signals, bonuses) == 0.85

    def test_clamped_to_unit_interval(self) -> None:
        assert additive_confidence(0.95, {"complete_faq": True}, _BONUSES) == 1.0
        assert additive_confidence(-0.5, {}, _BONUSES) == 0.0


@pytest.mark.parametrize(
    ("score", "level"),
    [
        (0.0, ConfidenceLevel.LOW),
        (0.59, ConfidenceLevel.LOW),
        (0.6, ConfidenceLevel.MEDIUM),
        (0.75, ConfidenceLevel.MEDIUM),
        (0.8, ConfidenceLevel.HIGH),
        (0.9, ConfidenceLevel.VERY_HIGH),
        (1.0, ConfidenceLevel.VERY_HIGH),
    ],
)
def test_confidence_to_level(score: float, level: ConfidenceLevel) -> None:
    assert confidence_to_level(score) is level
