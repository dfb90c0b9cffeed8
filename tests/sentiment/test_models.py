"""
Sentiment Model Tests.

============================================================
PURPOSE
============================================================
Tests for time series boundary validation and score models.

============================================================
"""

import pytest
from pydantic import ValidationError

from core.exceptions import DataValidationError, SeriesOrderingError
from sentiment.models import (
    FusionResult,
    SeriesOrder,
    SourceScore,
    SourceScores,
    TimeSeries,
    TimeSeriesRecord,
    Trend,
)

from .conftest import BASE_TS, DAY_MS, make_records


# ============================================================
# TIME SERIES TESTS
# ============================================================

class TestTimeSeries:
    """Tests for ordered time series."""

    def test_build_oldest_first(self):
        series = TimeSeries.build(make_records([1, 2, 3]))

        assert series.order is SeriesOrder.OLDEST_FIRST
        assert len(series) == 3
        assert series.values("price") == [1.0, 2.0, 3.0]

    def test_wrong_declared_order(self):
        with pytest.raises(SeriesOrderingError) as exc_info:
            TimeSeries.build(make_records([1, 2, 3]), SeriesOrder.NEWEST_FIRST)

        assert exc_info.value.index == 1

    def test_unsorted_records(self):
        records = make_records([1, 2, 3])
        records[1], records[2] = records[2], records[1]

        with pytest.raises(SeriesOrderingError):
            TimeSeries.build(records)

    def test_direct_construction_validates_order(self):
        records = [TimeSeriesRecord(**r) for r in make_records([1, 2])]

        with pytest.raises(ValidationError):
            TimeSeries(records=list(reversed(records)), order=SeriesOrder.OLDEST_FIRST)

    def test_negative_price_rejected(self):
        records = make_records([1, -2, 3])

        with pytest.raises(DataValidationError) as exc_info:
            TimeSeries.build(records)

        assert exc_info.value.context["field"] == "price"

    def test_reordering(self):
        series = TimeSeries.build(make_records([1, 2, 3]))

        newest = series.newest_first()

        assert newest.order is SeriesOrder.NEWEST_FIRST
        assert newest.values("price") == [3.0, 2.0, 1.0]
        assert newest.oldest_first().values("price") == [1.0, 2.0, 3.0]

    def test_values_with_explicit_order(self):
        newest = TimeSeries.build(
            list(reversed(make_records([1, 2, 3]))),
            SeriesOrder.NEWEST_FIRST,
        )

        assert newest.values("price", SeriesOrder.OLDEST_FIRST) == [1.0, 2.0, 3.0]

    def test_missing_values_become_zero(self):
        series = TimeSeries.build(make_records([1, 2]))

        assert series.values("galaxy_score") == [0.0, 0.0]

    def test_equal_timestamps_allowed(self):
        records = [{"timestamp": BASE_TS, "price": 1}, {"timestamp": BASE_TS, "price": 2}]

        assert len(TimeSeries.build(records)) == 2

    def test_accepts_record_instances(self):
        record = TimeSeriesRecord(timestamp=BASE_TS + DAY_MS, price=5)

        series = TimeSeries.build([record])

        assert series.records[0] is record


# ============================================================
# SCORE TESTS
# ============================================================

class TestScores:
    """Tests for SourceScore and SourceScores."""

    def test_source_score_clamped(self):
        assert SourceScore("social", 140.0, Trend.RISING).raw_score == 100.0
        assert SourceScore("social", -3.0, Trend.FALLING).raw_score == 0.0

    def test_normalized(self):
        score = SourceScore("news", 64.0, Trend.STABLE)

        assert score.normalized == 0.64

    def test_to_dict_includes_extras(self):
        score = SourceScore("news", 50.0, Trend.STABLE, extras={"article_count": 4})

        assert score.to_dict()["article_count"] == 4
        assert score.to_dict()["trend"] == "stable"

    def test_source_scores_present(self):
        social = SourceScore("social", 70.0, Trend.RISING)
        scores = SourceScores(social=social)

        assert scores.present() == {"social": social}
        assert len(scores) == 1

    def test_empty_source_scores(self):
        assert len(SourceScores()) == 0

    def test_fusion_result_to_dict(self):
        result = FusionResult(score=50.0, normalized=0.5, trend=Trend.STABLE)

        assert result.is_neutral
        assert result.to_dict()["breakdown"] == {}
