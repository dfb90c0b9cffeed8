"""
Sentiment Analyzer - Asset-level entry point.

Runs the requested source scorers concurrently, fuses whatever came
back, and exposes the ecosystem and sentiment/price correlation reports.

Error policy:
- Missing adapter (configuration) -> raised immediately
- A source without data -> warning, source skipped
- An asset without any source data -> None (batch calls continue)
"""

import asyncio
import logging
from typing import Dict, Optional, Sequence, Union

from core.cache import CacheProtocol, NullCache
from core.config import EngineConfig, present_weight_total
from core.exceptions import (
    DataUnavailableError,
    MissingAdapterError,
    describe_exception,
    is_soft_failure,
)

from .adapters.base import MarketDataAdapter
from .fusion import SignalFusionModel
from .models import (
    AssetSentimentSummary,
    CorrelationAnalysis,
    EcosystemSentiment,
    FusionResult,
    SeriesOrder,
    SourceName,
    SourceScore,
    SourceScores,
    Trend,
)
from .scorer import SourceSentimentScorer
from .statistics import calculate_optimal_lag, correlation, period_to_days


logger = logging.getLogger(__name__)


DEFAULT_SOURCES = (SourceName.SOCIAL, SourceName.NEWS, SourceName.MARKET)
ECOSYSTEM_TOP_N = 5


class SentimentAnalyzer:
    """
    Per-asset sentiment analysis over social, news and market sources.

    Usage:
        analyzer = SentimentAnalyzer(adapter, cache=InMemoryTTLCache())
        result = await analyzer.analyze_sentiment("BTC", timeframe="7d")
        if result:
            print(result.score, result.trend, result.confidence)
    """

    def __init__(
        self,
        adapter: Optional[MarketDataAdapter],
        cache: Optional[CacheProtocol] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.adapter = adapter
        self.cache = cache if cache is not None else NullCache()
        self.config = config or EngineConfig()
        self.scorer = SourceSentimentScorer(adapter, self.cache, self.config)
        self.model = SignalFusionModel(trend_threshold=self.config.trend_threshold)

    # ─────────────────────────────────────────────────────────────
    # Per-asset analysis
    # ─────────────────────────────────────────────────────────────

    async def score_sources(
        self,
        asset: str,
        timeframe: Optional[str] = None,
        sources: Sequence[Union[SourceName, str]] = DEFAULT_SOURCES,
    ) -> SourceScores:
        """
        Score every requested source concurrently.

        Sources that fail softly are left as None; anything else is raised.

        Raises:
            MissingAdapterError: No upstream adapter configured
        """
        timeframe = timeframe or self.config.default_timeframe
        requested = [SourceName(s) for s in sources]

        if self.adapter is None:
            raise MissingAdapterError(requested[0].value if requested else "sentiment")

        results = await asyncio.gather(
            *(self.scorer.analyze(asset, timeframe, s) for s in requested),
            return_exceptions=True,
        )

        scores: Dict[str, SourceScore] = {}
        for source, result in zip(requested, results):
            if not isinstance(result, BaseException):
                scores[source.value] = result
                continue
            if not is_soft_failure(result):
                logger.error(f"Failed scoring {source.value} for {asset}: {describe_exception(result)}")
                raise result
            logger.warning(
                f"Error analyzing {source.value} sentiment for {asset}: {describe_exception(result)}"
            )

        return SourceScores(**scores)

    async def analyze_sentiment(
        self,
        asset: str,
        timeframe: Optional[str] = None,
        sources: Sequence[Union[SourceName, str]] = DEFAULT_SOURCES,
    ) -> Optional[FusionResult]:
        """
        Fused sentiment for one asset.

        Returns:
            FusionResult, or None when no source produced data
        """
        timeframe = timeframe or self.config.default_timeframe
        source_key = "_".join(SourceName(s).value for s in sources)

        cache_key = f"sentiment_{asset}_{timeframe}_{source_key}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        scores = await self.score_sources(asset, timeframe, sources)
        present = scores.present()
        if not present:
            logger.warning(f"No sentiment data collected for {asset} ({timeframe})")
            return None

        total_weight = present_weight_total(self.config.source_weights, present)
        result = self.model.process(present, self.config.source_weights, total_weight)

        self.cache.set(cache_key, result, self.config.cache_ttl_seconds)
        return result

    async def analyze_many(
        self,
        assets: Sequence[str],
        timeframe: Optional[str] = None,
        sources: Sequence[Union[SourceName, str]] = DEFAULT_SOURCES,
    ) -> Dict[str, Optional[FusionResult]]:
        """
        Analyze several assets concurrently.

        One asset failing never aborts the batch; its entry is None.
        Configuration errors are still raised.
        """
        results = await asyncio.gather(
            *(self.analyze_sentiment(a, timeframe, sources) for a in assets),
            return_exceptions=True,
        )

        output: Dict[str, Optional[FusionResult]] = {}
        for asset, result in zip(assets, results):
            if not isinstance(result, BaseException):
                output[asset] = result
                continue
            if not is_soft_failure(result):
                raise result
            logger.warning(f"Skipping {asset}: {describe_exception(result)}")
            output[asset] = None
        return output

    # ─────────────────────────────────────────────────────────────
    # Reports
    # ─────────────────────────────────────────────────────────────

    async def analyze_ecosystem_sentiment(
        self,
        ecosystem: str,
        timeframe: Optional[str] = None,
        limit: int = 10,
    ) -> EcosystemSentiment:
        """
        Average sentiment across an ecosystem's assets.

        Raises:
            MissingAdapterError: No upstream adapter configured
            DataUnavailableError: Ecosystem has no assets
        """
        timeframe = timeframe or self.config.default_timeframe
        if self.adapter is None:
            raise MissingAdapterError("ecosystem")

        cache_key = f"ecosystem_sentiment_{ecosystem}_{timeframe}_{limit}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        assets = await self.adapter.get_ecosystem_assets(ecosystem, limit)
        if not assets:
            raise DataUnavailableError(
                f"No assets found for ecosystem: {ecosystem}",
                source="ecosystem",
            )

        fused = await self.analyze_many(assets, timeframe)
        summaries = [
            AssetSentimentSummary(asset=asset, score=result.score, trend=result.trend)
            for asset, result in fused.items()
            if result is not None
        ]

        avg_score = (
            sum(s.score for s in summaries) / len(summaries)
            if summaries else 0.0
        )

        rising = sum(1 for s in summaries if s.trend is Trend.RISING)
        falling = sum(1 for s in summaries if s.trend is Trend.FALLING)
        if rising > falling:
            trend = Trend.RISING
        elif falling > rising:
            trend = Trend.FALLING
        else:
            trend = Trend.STABLE

        top_assets = sorted(summaries, key=lambda s: s.score, reverse=True)[:ECOSYSTEM_TOP_N]

        result = EcosystemSentiment(
            ecosystem=ecosystem,
            score=avg_score,
            trend=trend,
            top_assets=top_assets,
            asset_count=len(summaries),
        )

        self.cache.set(cache_key, result, self.config.cache_ttl_seconds)
        return result

    async def analyze_sentiment_price_correlation(
        self,
        asset: str,
        timeframe: str = "90d",
        interval: str = "1d",
    ) -> CorrelationAnalysis:
        """
        Correlation between the galaxy score and price, and the lag at
        which it is strongest.

        Raises:
            MissingAdapterError: No upstream adapter configured
            DataUnavailableError: No time series for asset
        """
        if self.adapter is None:
            raise MissingAdapterError("correlation")

        cache_key = f"correlation_{asset}_{timeframe}_{interval}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        series = await self.adapter.get_time_series(asset, interval, period_to_days(timeframe))
        if series is None or len(series) == 0:
            raise DataUnavailableError(
                f"No time series data available for {asset}",
                asset=asset,
                source="correlation",
            )

        sentiment_values = series.values("galaxy_score", SeriesOrder.OLDEST_FIRST)
        prices = series.values("price", SeriesOrder.OLDEST_FIRST)

        coefficient = correlation(sentiment_values, prices, self.config.min_data_points)
        lag = calculate_optimal_lag(
            sentiment_values,
            prices,
            self.config.max_correlation_lag,
            self.config.min_data_points,
        )

        result = CorrelationAnalysis(
            asset=asset,
            coefficient=coefficient,
            lag=lag,
            significance=correlation_significance(coefficient),
            interpretation=interpret_correlation(coefficient, lag),
        )

        self.cache.set(cache_key, result, self.config.cache_ttl_seconds)
        return result


def correlation_significance(coefficient: float) -> str:
    strength = abs(coefficient)
    if strength > 0.5:
        return "high"
    if strength > 0.3:
        return "medium"
    return "low"


def interpret_correlation(coefficient: float, lag: int) -> str:
    """Human-readable description of a correlation and its lag (in days)."""
    strength = abs(coefficient)
    if strength > 0.7:
        label = "strong"
    elif strength > 0.5:
        label = "moderate"
    elif strength > 0.3:
        label = "weak"
    else:
        label = "very weak"

    direction = "positive" if coefficient > 0 else "negative"
    prefix = f"Sentiment shows a {label} {direction} correlation with price movements"

    if lag == 0:
        return f"{prefix}, occurring simultaneously."
    if lag > 0:
        return f"{prefix}, leading by {lag} day(s)."
    return f"{prefix}, lagging by {abs(lag)} day(s)."
