"""
Signal Fusion Model Tests.

============================================================
PURPOSE
============================================================
Tests for weighted fusion of per-source scores.

TEST CATEGORIES:
- Weighted score and breakdown
- Trend vote and agreement-based confidence
- Neutral result on zero weight

============================================================
"""

import pytest

from sentiment.fusion import SignalFusionModel, neutral_fusion_result, round_half_up
from sentiment.models import SourceScore, SourceScores, Trend


DEFAULT_WEIGHTS = {"social": 0.6, "news": 0.3, "market": 0.1}


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def model():
    return SignalFusionModel()


@pytest.fixture
def scenario_sources():
    return {
        "social": SourceScore("social", 80.0, Trend.RISING),
        "news": SourceScore("news", 60.0, Trend.STABLE),
        "market": SourceScore("market", 40.0, Trend.FALLING),
    }


# ============================================================
# WEIGHTED SCORE TESTS
# ============================================================

class TestWeightedScore:
    """Tests for the fused score."""

    def test_three_source_scenario(self, model, scenario_sources):
        """80*.6 + 60*.3 + 40*.1 = 70.0"""
        result = model.process(scenario_sources, DEFAULT_WEIGHTS, total_weight=1.0)

        assert result.score == 70.0
        assert result.normalized == pytest.approx(0.70)
        assert result.breakdown["social"].contribution == pytest.approx(48.0)
        assert result.breakdown["news"].contribution == pytest.approx(18.0)
        assert result.breakdown["market"].contribution == pytest.approx(4.0)

    def test_three_source_trend_and_confidence(self, model, scenario_sources):
        result = model.process(scenario_sources, DEFAULT_WEIGHTS)

        # votes +1, 0, -1 -> stable; only news agrees
        assert result.trend is Trend.STABLE
        assert result.confidence == 0.67

    def test_single_source_equals_raw_score(self, model):
        data = {"social": SourceScore("social", 73.4, Trend.RISING)}

        result = model.process(data, {"social": 1.0}, total_weight=1.0)

        assert result.score == 73.4
        assert result.trend is Trend.RISING
        # 0.5 * 1/3 + 0.5 * 1
        assert result.confidence == 0.67
        assert result.breakdown["social"].weight == 1.0

    def test_weights_renormalized_over_present_sources(self, model, scenario_sources):
        present = {k: scenario_sources[k] for k in ("social", "news")}

        result = model.process(present, DEFAULT_WEIGHTS)

        # (80*.6 + 60*.3) / .9
        assert result.score == 73.3
        assert sum(b.weight for b in result.breakdown.values()) == pytest.approx(1.0)
        assert "market" not in result.breakdown

    def test_accepts_source_scores_record(self, model, scenario_sources):
        record = SourceScores(**scenario_sources)

        assert model.process(record, DEFAULT_WEIGHTS).score == 70.0

    def test_unweighted_source_contributes_nothing(self, model):
        data = {
            "social": SourceScore("social", 90.0, Trend.RISING),
            "onchain": SourceScore("onchain", 10.0, Trend.FALLING),
        }

        result = model.process(data, {"social": 1.0})

        assert result.score == 90.0
        assert result.breakdown["onchain"].contribution == 0.0


# ============================================================
# TREND / CONFIDENCE TESTS
# ============================================================

class TestTrendAndConfidence:
    """Tests for trend voting and confidence."""

    def test_unanimous_rising(self, model):
        data = {
            name: SourceScore(name, 70.0, Trend.RISING)
            for name in ("social", "news", "market")
        }

        result = model.process(data, DEFAULT_WEIGHTS)

        assert result.trend is Trend.RISING
        assert result.confidence == 1.0

    def test_majority_falling(self, model):
        data = {
            "social": SourceScore("social", 30.0, Trend.FALLING),
            "news": SourceScore("news", 35.0, Trend.FALLING),
            "market": SourceScore("market", 50.0, Trend.STABLE),
        }

        result = model.process(data, DEFAULT_WEIGHTS)

        assert result.trend is Trend.FALLING
        # 0.5 * 1 + 0.5 * 2/3
        assert result.confidence == 0.83

    def test_custom_threshold(self):
        data = {
            "social": SourceScore("social", 60.0, Trend.RISING),
            "news": SourceScore("news", 60.0, Trend.STABLE),
            "market": SourceScore("market", 60.0, Trend.STABLE),
        }

        assert SignalFusionModel(trend_threshold=0.05).process(data, DEFAULT_WEIGHTS).trend is Trend.RISING
        assert SignalFusionModel(trend_threshold=0.5).process(data, DEFAULT_WEIGHTS).trend is Trend.STABLE

    def test_confidence_clamped_to_one(self, model):
        data = {
            name: SourceScore(name, 55.0, Trend.RISING)
            for name in ("a", "b", "c", "d")
        }

        result = model.process(data, {"a": 1, "b": 1, "c": 1, "d": 1})

        assert result.confidence == 1.0


# ============================================================
# NEUTRAL RESULT TESTS
# ============================================================

class TestNeutral:
    """Tests for the zero-weight neutral result."""

    def test_zero_total_weight(self, model, scenario_sources):
        result = model.process(scenario_sources, DEFAULT_WEIGHTS, total_weight=0)

        assert result == neutral_fusion_result()
        assert result.score == 50.0
        assert result.normalized == 0.5
        assert result.trend is Trend.STABLE
        assert result.confidence == 0.0
        assert result.breakdown == {}

    def test_no_weighted_sources(self, model):
        data = {"onchain": SourceScore("onchain", 90.0, Trend.RISING)}

        assert model.process(data, DEFAULT_WEIGHTS).is_neutral

    def test_empty_input(self, model):
        assert model.process({}, DEFAULT_WEIGHTS).is_neutral


class TestRoundHalfUp:
    """Tests for display rounding."""

    @pytest.mark.parametrize("value, digits, expected", [
        (2.5, 0, 3.0),
        (0.125, 2, 0.13),
        (-1.25, 1, -1.2),
    ])
    def test_round_half_up(self, value, digits, expected):
        assert round_half_up(value, digits) == pytest.approx(expected)
