"""
Sentiment - Market Data Adapter Base.

============================================================
PURPOSE
============================================================
Abstract interface for the upstream data provider that feeds
the source scorers.

DESIGN PRINCIPLES:
- Provider-agnostic interface
- Time series are returned OLDEST FIRST, validated at the boundary
- Fully testable with mock adapters

============================================================
"""

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..models import TimeSeries


# ============================================================
# SOCIAL METRICS
# ============================================================

class SocialMetrics(BaseModel):
    """Aggregate social metrics for one asset and period."""
    model_config = ConfigDict(frozen=True)

    sentiment: float = Field(default=0.0, ge=0, le=100)
    """Upstream social sentiment score (0-100)."""

    social_volume: float = Field(default=0.0, ge=0)
    """Number of social posts."""

    engagement: float = Field(default=0.0, ge=0)
    """Interaction intensity."""


# ============================================================
# ADAPTER INTERFACE
# ============================================================

class MarketDataAdapter(ABC):
    """
    Upstream provider of time series and social metrics.

    Implementations raise DataUnavailableError when an asset has
    no data; any other exception is treated the same way by callers.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and errors."""
        pass

    @abstractmethod
    async def get_time_series(
        self,
        asset: str,
        interval: str,
        days: float,
    ) -> TimeSeries:
        """Return the series for asset, ordered OLDEST FIRST."""
        pass

    @abstractmethod
    async def get_social_metrics(
        self,
        asset: str,
        days: float,
    ) -> SocialMetrics:
        """Return aggregate social metrics for asset over days."""
        pass

    @abstractmethod
    async def get_ecosystem_assets(
        self,
        ecosystem: str,
        limit: int,
    ) -> List[str]:
        """Return up to limit asset symbols belonging to ecosystem."""
        pass

    async def close(self) -> None:
        """Cleanup resources. Override if needed."""
        pass
