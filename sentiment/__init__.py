"""
Sentiment Layer - Source scoring and weighted fusion.

Sentiment is a signal input, never a decision. The consensus package
turns fused results into agent signals.

This package provides:
- Time series statistics (correlation, trend, optimal lag)
- Per-source scoring for social, news and market behavior
- Weighted fusion of the sources present for an asset
- Asset, batch, ecosystem and correlation analysis

Usage:
    from core import InMemoryTTLCache
    from sentiment import SentimentAnalyzer, MockMarketDataAdapter

    analyzer = SentimentAnalyzer(adapter, cache=InMemoryTTLCache())

    result = await analyzer.analyze_sentiment("BTC", timeframe="7d")
    if result is not None:
        print(f"Score: {result.score}")
        print(f"Trend: {result.trend.value}")
        print(f"Confidence: {result.confidence}")

Output Schema (FusionResult):
- score: 0 (very bearish) to 100 (very bullish), 1 decimal
- normalized: score / 100
- trend: rising, falling or stable
- breakdown: per-source score, weight, contribution and trend
- confidence: 0.0 to 1.0, 2 decimals

Default Source Weights:
- social: 0.6
- news: 0.3
- market: 0.1
"""

from .adapters import MarketDataAdapter, MockAdapterConfig, MockMarketDataAdapter, SocialMetrics
from .analyzer import (
    DEFAULT_SOURCES,
    SentimentAnalyzer,
    correlation_significance,
    interpret_correlation,
)
from .fusion import SignalFusionModel, neutral_fusion_result, round_half_up
from .models import (
    AssetSentimentSummary,
    BreakdownEntry,
    CorrelationAnalysis,
    EcosystemSentiment,
    FusionResult,
    SeriesOrder,
    SourceName,
    SourceScore,
    SourceScores,
    TimeSeries,
    TimeSeriesRecord,
    Trend,
)
from .scorer import SourceSentimentScorer, compute_market_score
from .statistics import (
    calculate_optimal_lag,
    calculate_trend,
    correlation,
    get_significance,
    mean,
    normalize_score,
    period_returns,
    period_to_days,
    stddev,
)


__all__ = [
    # Adapters
    "MarketDataAdapter",
    "MockMarketDataAdapter",
    "MockAdapterConfig",
    "SocialMetrics",

    # Models
    "Trend",
    "SourceName",
    "SeriesOrder",
    "TimeSeriesRecord",
    "TimeSeries",
    "SourceScore",
    "SourceScores",
    "BreakdownEntry",
    "FusionResult",
    "AssetSentimentSummary",
    "EcosystemSentiment",
    "CorrelationAnalysis",

    # Statistics
    "mean",
    "stddev",
    "period_returns",
    "correlation",
    "calculate_trend",
    "calculate_optimal_lag",
    "normalize_score",
    "get_significance",
    "period_to_days",

    # Scoring and fusion
    "SourceSentimentScorer",
    "compute_market_score",
    "SignalFusionModel",
    "neutral_fusion_result",
    "round_half_up",

    # Analysis
    "SentimentAnalyzer",
    "DEFAULT_SOURCES",
    "correlation_significance",
    "interpret_correlation",
]
