"""
Sentiment Data Models - Source scores, fusion output and inbound time series.

All score objects are created fresh per processing cycle and discarded
afterwards. They may be held in an injected cache, never in a database.

Time series ordering is declared explicitly on every TimeSeries and
validated on construction. Upstream adapters return oldest-first series;
trend classification consumes newest-first values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from core.exceptions import DataValidationError, SeriesOrderingError


class Trend(Enum):
    """Direction of a value's recent vs. older average."""
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"

    @property
    def vote(self) -> int:
        """+1 / -1 / 0 vote used by trend aggregation."""
        if self is Trend.RISING:
            return 1
        if self is Trend.FALLING:
            return -1
        return 0


class SourceName(Enum):
    """Sentiment sources known to the fusion model."""
    SOCIAL = "social"
    NEWS = "news"
    MARKET = "market"


class SeriesOrder(Enum):
    """Declared ordering of a time series."""
    OLDEST_FIRST = "oldest_first"
    NEWEST_FIRST = "newest_first"


# ─────────────────────────────────────────────────────────────
# Inbound time series
# ─────────────────────────────────────────────────────────────

class TimeSeriesRecord(BaseModel):
    """One observation delivered by an ingestion adapter."""
    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(ge=0, description="Epoch milliseconds")
    price: Optional[float] = Field(default=None, ge=0)
    volume: Optional[float] = Field(default=None, ge=0)
    social_score: Optional[float] = None
    galaxy_score: Optional[float] = None
    news_score: Optional[float] = None
    social_contributors: Optional[float] = Field(default=None, ge=0)
    article_count: Optional[int] = Field(default=None, ge=0)


class TimeSeries(BaseModel):
    """
    Ordered sequence of TimeSeriesRecord with a declared order.

    Construction fails when the timestamps are not monotonic in the
    declared direction. Use TimeSeries.build() to get a
    SeriesOrderingError instead of a pydantic ValidationError.
    """
    model_config = ConfigDict(frozen=True)

    records: List[TimeSeriesRecord] = Field(default_factory=list)
    order: SeriesOrder = SeriesOrder.OLDEST_FIRST

    @model_validator(mode="after")
    def _check_order(self) -> "TimeSeries":
        index = _first_out_of_order(self.records, self.order)
        if index is not None:
            raise ValueError(f"out_of_order:{index}")
        return self

    @classmethod
    def build(
        cls,
        records: List[Any],
        order: SeriesOrder = SeriesOrder.OLDEST_FIRST,
    ) -> "TimeSeries":
        """
        Validate raw records (dicts or TimeSeriesRecord) at the boundary.

        Raises:
            SeriesOrderingError: Timestamps break the declared order
            DataValidationError: A record fails field validation
        """
        parsed = []
        for i, raw in enumerate(records):
            if isinstance(raw, TimeSeriesRecord):
                parsed.append(raw)
                continue
            try:
                parsed.append(TimeSeriesRecord.model_validate(raw))
            except ValidationError as e:
                raise DataValidationError(
                    f"Invalid time series record at index {i}: {e.errors()[0]['msg']}",
                    field=str(e.errors()[0]["loc"][0]) if e.errors()[0]["loc"] else None,
                    context={"index": i},
                )

        index = _first_out_of_order(parsed, order)
        if index is not None:
            raise SeriesOrderingError(order.value, index)
        return cls(records=parsed, order=order)

    def __len__(self) -> int:
        return len(self.records)

    def oldest_first(self) -> "TimeSeries":
        if self.order is SeriesOrder.OLDEST_FIRST:
            return self
        return TimeSeries(records=list(reversed(self.records)), order=SeriesOrder.OLDEST_FIRST)

    def newest_first(self) -> "TimeSeries":
        if self.order is SeriesOrder.NEWEST_FIRST:
            return self
        return TimeSeries(records=list(reversed(self.records)), order=SeriesOrder.NEWEST_FIRST)

    def values(self, field_name: str, order: Optional[SeriesOrder] = None) -> List[float]:
        """Extract one numeric field as floats (missing values become 0)."""
        series = self
        if order is SeriesOrder.OLDEST_FIRST:
            series = self.oldest_first()
        elif order is SeriesOrder.NEWEST_FIRST:
            series = self.newest_first()
        return [float(getattr(r, field_name) or 0) for r in series.records]


def _first_out_of_order(
    records: List[TimeSeriesRecord],
    order: SeriesOrder,
) -> Optional[int]:
    for i in range(1, len(records)):
        prev, cur = records[i - 1].timestamp, records[i].timestamp
        if order is SeriesOrder.OLDEST_FIRST and cur < prev:
            return i
        if order is SeriesOrder.NEWEST_FIRST and cur > prev:
            return i
    return None


# ─────────────────────────────────────────────────────────────
# Scores
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SourceScore:
    """
    Normalized score for one (asset, timeframe, source).

    raw_score: 0 to 100
    normalized: raw_score / 100
    """
    name: str
    raw_score: float
    trend: Trend
    extras: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Clamp score range."""
        if not 0.0 <= self.raw_score <= 100.0:
            object.__setattr__(self, "raw_score", max(0.0, min(100.0, self.raw_score)))

    @property
    def normalized(self) -> float:
        return self.raw_score / 100

    @property
    def score(self) -> float:
        return self.raw_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.raw_score,
            "normalized": self.normalized,
            "trend": self.trend.value,
            **self.extras,
        }


@dataclass(frozen=True)
class SourceScores:
    """
    Fixed-shape record of the per-source scores for one asset.

    A source that was not requested, or failed, is None.
    """
    social: Optional[SourceScore] = None
    news: Optional[SourceScore] = None
    market: Optional[SourceScore] = None

    def present(self) -> Dict[str, SourceScore]:
        """Mapping of source name to score for sources that produced data."""
        result: Dict[str, SourceScore] = {}
        for source in SourceName:
            score = getattr(self, source.value)
            if score is not None:
                result[source.value] = score
        return result

    def __len__(self) -> int:
        return len(self.present())


@dataclass(frozen=True)
class BreakdownEntry:
    """Contribution of one source to a fused score."""
    score: float
    weight: float
    contribution: float
    trend: Trend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "weight": self.weight,
            "contribution": self.contribution,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class FusionResult:
    """
    Asset-level fused score.

    score: 0 to 100, rounded to 1 decimal
    confidence: 0 to 1, rounded to 2 decimals
    """
    score: float
    normalized: float
    trend: Trend
    breakdown: Dict[str, BreakdownEntry] = field(default_factory=dict)
    confidence: float = 0.0

    @property
    def is_neutral(self) -> bool:
        return not self.breakdown and self.confidence == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "normalized": self.normalized,
            "trend": self.trend.value,
            "breakdown": {k: v.to_dict() for k, v in self.breakdown.items()},
            "confidence": self.confidence,
        }


# ─────────────────────────────────────────────────────────────
# Analyzer outputs
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AssetSentimentSummary:
    """Per-asset line of an ecosystem report."""
    asset: str
    score: float
    trend: Trend


@dataclass(frozen=True)
class EcosystemSentiment:
    """Sentiment across the assets of one ecosystem."""
    ecosystem: str
    score: float
    trend: Trend
    top_assets: List[AssetSentimentSummary]
    asset_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ecosystem": self.ecosystem,
            "score": self.score,
            "trend": self.trend.value,
            "top_assets": [
                {"asset": a.asset, "score": a.score, "trend": a.trend.value}
                for a in self.top_assets
            ],
            "asset_count": self.asset_count,
        }


@dataclass(frozen=True)
class CorrelationAnalysis:
    """Sentiment vs. price correlation for one asset."""
    asset: str
    coefficient: float
    lag: int
    significance: str
    interpretation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "coefficient": self.coefficient,
            "lag": self.lag,
            "significance": self.significance,
            "interpretation": self.interpretation,
        }
