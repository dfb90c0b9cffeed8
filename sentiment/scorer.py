"""
Source Sentiment Scorer - Turns one source's time series into a SourceScore.

Sources:
- market: derived from price/volume behavior
    trend_factor       = 1.2 rising / 0.8 falling / 1.0 stable
    volatility_factor  = max(0, 1 - 10 * stddev(period returns))
    correlation_factor = (price_volume_correlation + 1) / 2
    score = clamp(50 * trend_factor * (0.4 * vol_f + 0.6 * corr_f), 0, 100)
- social: upstream 0-100 score, trend from the galaxy score series
- news: mean per-record news score, trend from the same values

Ordering: the adapter returns series OLDEST FIRST. Returns and
correlations are computed oldest first; trends are computed on the
NEWEST FIRST view of the same series.

Failures are per source. A missing adapter is a configuration error
and is raised; a source without data raises DataUnavailableError and
the caller moves on to the next source.
"""

import logging
from typing import Callable, Dict, Optional, Sequence, Union

from core.cache import CacheProtocol, NullCache
from core.config import EngineConfig
from core.exceptions import (
    AggregationException,
    DataUnavailableError,
    MissingAdapterError,
    wrap_exception,
)

from .adapters.base import MarketDataAdapter
from .models import SeriesOrder, SourceName, SourceScore, TimeSeries, Trend
from .statistics import (
    calculate_trend,
    correlation,
    period_returns,
    period_to_days,
    stddev,
)


logger = logging.getLogger(__name__)


TREND_FACTORS: Dict[Trend, float] = {
    Trend.RISING: 1.2,
    Trend.FALLING: 0.8,
    Trend.STABLE: 1.0,
}

NEWS_FROM_SOCIAL_RATIO = 0.8

SERIES_INTERVAL = "1d"


def compute_market_score(
    prices: Sequence[float],
    volumes: Sequence[float],
    trend_threshold: float = 0.05,
    avg_periods: int = 3,
    min_data_points: int = 3,
) -> SourceScore:
    """
    Market-behavior score from OLDEST FIRST price and volume series.
    """
    volatility = stddev(period_returns(prices))
    price_volume_correlation = correlation(prices, volumes, min_data_points)

    price_trend = calculate_trend(list(reversed(prices)), trend_threshold, avg_periods)
    volume_trend = calculate_trend(list(reversed(volumes)), trend_threshold, avg_periods)

    trend_factor = TREND_FACTORS[price_trend]
    volatility_factor = max(0.0, 1 - 10 * volatility)
    correlation_factor = (price_volume_correlation + 1) / 2

    score = 50 * trend_factor * (0.4 * volatility_factor + 0.6 * correlation_factor)
    score = min(100.0, max(0.0, score))

    return SourceScore(
        name=SourceName.MARKET.value,
        raw_score=score,
        trend=price_trend,
        extras={
            "volatility": volatility,
            "volume_trend": volume_trend.value,
            "price_volume_correlation": price_volume_correlation,
        },
    )


class SourceSentimentScorer:
    """
    Produces a SourceScore per (asset, timeframe, source).

    Results are cached in the injected cache under
    "{source}_sentiment_{asset}_{timeframe}".
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

        self._handlers: Dict[SourceName, Callable] = {
            SourceName.MARKET: self._score_market,
            SourceName.SOCIAL: self._score_social,
            SourceName.NEWS: self._score_news,
        }

    async def analyze(
        self,
        asset: str,
        timeframe: str,
        source: Union[SourceName, str],
    ) -> SourceScore:
        """
        Score one source for one asset.

        Raises:
            MissingAdapterError: No upstream adapter configured
            DataUnavailableError: Source has no usable data for asset
        """
        source = SourceName(source)
        if self.adapter is None:
            raise MissingAdapterError(source.value)

        cache_key = f"{source.value}_sentiment_{asset}_{timeframe}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            result = await self._handlers[source](asset, timeframe)
        except AggregationException:
            raise
        except Exception as e:
            logger.warning(f"[{source.value}] Upstream error for {asset}: {e}")
            raise wrap_exception(
                e,
                DataUnavailableError,
                message=f"{source.value} data unavailable for {asset}",
                asset=asset,
                source=source.value,
            ) from e

        self.cache.set(cache_key, result, self.config.cache_ttl_seconds)
        return result

    async def score_market(self, asset: str, timeframe: str) -> SourceScore:
        return await self.analyze(asset, timeframe, SourceName.MARKET)

    async def score_social(self, asset: str, timeframe: str) -> SourceScore:
        return await self.analyze(asset, timeframe, SourceName.SOCIAL)

    async def score_news(self, asset: str, timeframe: str) -> SourceScore:
        return await self.analyze(asset, timeframe, SourceName.NEWS)

    # ─────────────────────────────────────────────────────────────
    # Per-source scoring
    # ─────────────────────────────────────────────────────────────

    async def _fetch_series(self, asset: str, timeframe: str, source: SourceName) -> TimeSeries:
        series = await self.adapter.get_time_series(
            asset, SERIES_INTERVAL, period_to_days(timeframe)
        )
        if series is None or len(series) == 0:
            raise DataUnavailableError(
                f"No time series data available for {asset}",
                asset=asset,
                source=source.value,
            )
        return series

    async def _score_market(self, asset: str, timeframe: str) -> SourceScore:
        series = await self._fetch_series(asset, timeframe, SourceName.MARKET)

        return compute_market_score(
            series.values("price", SeriesOrder.OLDEST_FIRST),
            series.values("volume", SeriesOrder.OLDEST_FIRST),
            trend_threshold=self.config.trend_threshold,
            avg_periods=self.config.avg_periods,
            min_data_points=self.config.min_data_points,
        )

    async def _score_social(self, asset: str, timeframe: str) -> SourceScore:
        days = period_to_days(timeframe)
        metrics = await self.adapter.get_social_metrics(asset, days)
        series = await self._fetch_series(asset, timeframe, SourceName.SOCIAL)

        trend = calculate_trend(
            series.values("galaxy_score", SeriesOrder.NEWEST_FIRST),
            self.config.trend_threshold,
            self.config.avg_periods,
        )

        return SourceScore(
            name=SourceName.SOCIAL.value,
            raw_score=metrics.sentiment,
            trend=trend,
            extras={
                "engagement": {
                    "volume": metrics.social_volume,
                    "participants": sum(series.values("social_contributors")),
                    "intensity": metrics.engagement,
                },
            },
        )

    async def _score_news(self, asset: str, timeframe: str) -> SourceScore:
        series = await self._fetch_series(asset, timeframe, SourceName.NEWS)

        # Records without a news score fall back to a discounted social score
        newest_first = []
        for record in series.newest_first().records:
            if record.news_score is not None:
                newest_first.append(record.news_score)
            elif record.social_score is not None:
                newest_first.append(record.social_score * NEWS_FROM_SOCIAL_RATIO)

        if not newest_first:
            raise DataUnavailableError(
                f"No news sentiment values for {asset}",
                asset=asset,
                source=SourceName.NEWS.value,
            )

        avg_news = sum(newest_first) / len(newest_first)
        trend = calculate_trend(
            newest_first,
            self.config.trend_threshold,
            self.config.avg_periods,
        )

        return SourceScore(
            name=SourceName.NEWS.value,
            raw_score=avg_news,
            trend=trend,
            extras={
                "article_count": sum(r.article_count or 0 for r in series.records),
            },
        )
