"""
Sentiment - Mock Market Data Adapter.

============================================================
PURPOSE
============================================================
In-memory adapter for tests and offline runs.

FEATURES:
- Preloaded series / social metrics / ecosystems per asset
- Configurable latency
- Error injection per asset
- Call tracking

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from core.exceptions import DataUnavailableError

from ..models import SeriesOrder, TimeSeries
from .base import MarketDataAdapter, SocialMetrics


logger = logging.getLogger(__name__)


# ============================================================
# MOCK CONFIGURATION
# ============================================================

@dataclass
class MockAdapterConfig:
    """Configuration for the mock adapter."""

    latency_seconds: float = 0.0
    """Simulated latency per call."""

    failing_assets: Set[str] = field(default_factory=set)
    """Assets whose calls raise RuntimeError."""

    max_points: Optional[int] = None
    """Truncate returned series to the most recent N points."""


# ============================================================
# MOCK ADAPTER
# ============================================================

class MockMarketDataAdapter(MarketDataAdapter):
    """
    Mock upstream provider.

    Series may be loaded in either order; get_time_series always
    returns them oldest first.
    """

    def __init__(
        self,
        series: Optional[Dict[str, Union[TimeSeries, List[Dict[str, Any]]]]] = None,
        social_metrics: Optional[Dict[str, Union[SocialMetrics, Dict[str, Any]]]] = None,
        ecosystems: Optional[Dict[str, List[str]]] = None,
        config: Optional[MockAdapterConfig] = None,
    ) -> None:
        self._config = config or MockAdapterConfig()
        self._series: Dict[str, TimeSeries] = {}
        self._social: Dict[str, SocialMetrics] = {}
        self._ecosystems: Dict[str, List[str]] = dict(ecosystems or {})
        self.calls: Dict[str, int] = {
            "get_time_series": 0,
            "get_social_metrics": 0,
            "get_ecosystem_assets": 0,
        }

        for asset, data in (series or {}).items():
            self.load_series(asset, data)
        for asset, metrics in (social_metrics or {}).items():
            self._social[asset] = (
                metrics if isinstance(metrics, SocialMetrics)
                else SocialMetrics.model_validate(metrics)
            )

    @property
    def name(self) -> str:
        return "mock"

    def load_series(
        self,
        asset: str,
        data: Union[TimeSeries, List[Dict[str, Any]]],
        order: SeriesOrder = SeriesOrder.OLDEST_FIRST,
    ) -> None:
        """Load (or replace) the series for asset."""
        if isinstance(data, TimeSeries):
            self._series[asset] = data
        else:
            self._series[asset] = TimeSeries.build(data, order)

    async def get_time_series(
        self,
        asset: str,
        interval: str,
        days: float,
    ) -> TimeSeries:
        self.calls["get_time_series"] += 1
        await self._before_call(asset)

        series = self._series.get(asset)
        if series is None or len(series) == 0:
            raise DataUnavailableError(
                f"No time series data available for {asset}",
                asset=asset,
                source=self.name,
            )

        series = series.oldest_first()
        if self._config.max_points is not None:
            series = TimeSeries(
                records=series.records[-self._config.max_points:],
                order=SeriesOrder.OLDEST_FIRST,
            )
        return series

    async def get_social_metrics(
        self,
        asset: str,
        days: float,
    ) -> SocialMetrics:
        self.calls["get_social_metrics"] += 1
        await self._before_call(asset)

        metrics = self._social.get(asset)
        if metrics is None:
            raise DataUnavailableError(
                f"No social metrics available for {asset}",
                asset=asset,
                source=self.name,
            )
        return metrics

    async def get_ecosystem_assets(
        self,
        ecosystem: str,
        limit: int,
    ) -> List[str]:
        self.calls["get_ecosystem_assets"] += 1
        await self._simulate_latency()
        return list(self._ecosystems.get(ecosystem, []))[:limit]

    async def _before_call(self, asset: str) -> None:
        await self._simulate_latency()
        if asset in self._config.failing_assets:
            logger.debug(f"[mock] Injecting failure for {asset}")
            raise RuntimeError(f"Injected failure for {asset}")

    async def _simulate_latency(self) -> None:
        if self._config.latency_seconds > 0:
            await asyncio.sleep(self._config.latency_seconds)
