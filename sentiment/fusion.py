"""
Signal Fusion Model - Combines per-source scores into one asset-level score.

Weights are renormalized over the sources actually present, so a
missing source never drags the fused score toward zero. Confidence
grows with the number of sources and with how many of them agree on
the overall trend:

    confidence = 0.5 * (num_sources / 3) + 0.5 * trend_agreement_ratio

A zero (or negative) total weight yields the neutral result instead
of raising.
"""

import logging
import math
from typing import Mapping, Optional, Union

from .models import BreakdownEntry, FusionResult, SourceScore, SourceScores, Trend


logger = logging.getLogger(__name__)


DEFAULT_SCORE = 50.0
REFERENCE_SOURCE_COUNT = 3


def round_half_up(value: float, digits: int) -> float:
    """Round like a price display does (0.5 always goes up)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def neutral_fusion_result() -> FusionResult:
    return FusionResult(
        score=DEFAULT_SCORE,
        normalized=DEFAULT_SCORE / 100,
        trend=Trend.STABLE,
        breakdown={},
        confidence=0.0,
    )


class SignalFusionModel:
    """
    Weighted fusion of SourceScore values for one asset.

    Usage:
        model = SignalFusionModel()
        result = model.process(
            {"social": social_score, "news": news_score},
            weights={"social": 0.6, "news": 0.3, "market": 0.1},
        )
    """

    def __init__(self, trend_threshold: float = 0.05) -> None:
        self.trend_threshold = trend_threshold

    def process(
        self,
        sentiment_data: Union[Mapping[str, SourceScore], SourceScores],
        weights: Mapping[str, float],
        total_weight: Optional[float] = None,
    ) -> FusionResult:
        """
        Fuse the present sources.

        Args:
            sentiment_data: source name -> SourceScore (or a SourceScores record)
            weights: source name -> weight (need not sum to 1)
            total_weight: sum of weights of the present sources; computed
                from weights when omitted

        Returns:
            FusionResult (neutral when total_weight <= 0)
        """
        if isinstance(sentiment_data, SourceScores):
            sentiment_data = sentiment_data.present()

        if total_weight is None:
            total_weight = sum(weights.get(name, 0.0) for name in sentiment_data)

        if total_weight <= 0 or not sentiment_data:
            logger.debug("Fusion skipped: no weighted sources present")
            return neutral_fusion_result()

        normalized_weights = {
            name: weights.get(name, 0.0) / total_weight
            for name in sentiment_data
        }

        weighted_score = 0.0
        breakdown = {}
        for name, data in sentiment_data.items():
            weight = normalized_weights[name]
            contribution = data.score * weight
            weighted_score += contribution
            breakdown[name] = BreakdownEntry(
                score=data.score,
                weight=weight,
                contribution=contribution,
                trend=data.trend,
            )

        votes = [data.trend.vote for data in sentiment_data.values()]
        avg_trend = sum(votes) / len(votes)
        if avg_trend > self.trend_threshold:
            trend = Trend.RISING
        elif avg_trend < -self.trend_threshold:
            trend = Trend.FALLING
        else:
            trend = Trend.STABLE

        agreeing = sum(1 for v in votes if _vote_matches(trend, v))
        agreement_ratio = agreeing / max(1, len(votes))

        num_sources = len(sentiment_data)
        confidence = 0.5 * (num_sources / REFERENCE_SOURCE_COUNT) + 0.5 * agreement_ratio
        confidence = min(1.0, confidence)

        return FusionResult(
            score=round_half_up(weighted_score, 1),
            normalized=weighted_score / 100,
            trend=trend,
            breakdown=breakdown,
            confidence=round_half_up(confidence, 2),
        )


def _vote_matches(trend: Trend, vote: int) -> bool:
    if trend is Trend.RISING:
        return vote > 0
    if trend is Trend.FALLING:
        return vote < 0
    return vote == 0
