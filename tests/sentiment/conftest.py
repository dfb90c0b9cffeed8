"""Shared fixtures for sentiment tests."""

from typing import Any, Dict, List, Optional, Sequence

import pytest

from core.cache import InMemoryTTLCache
from core.clock import MockClock
from sentiment.adapters import MockMarketDataAdapter


BASE_TS = 1_704_067_200_000
DAY_MS = 86_400_000


def make_records(
    prices: Sequence[float],
    volumes: Optional[Sequence[float]] = None,
    galaxy: Optional[Sequence[float]] = None,
    social: Optional[Sequence[Optional[float]]] = None,
    news: Optional[Sequence[Optional[float]]] = None,
) -> List[Dict[str, Any]]:
    """Daily records, oldest first."""
    records = []
    for i, price in enumerate(prices):
        record: Dict[str, Any] = {"timestamp": BASE_TS + i * DAY_MS, "price": price}
        if volumes is not None:
            record["volume"] = volumes[i]
        if galaxy is not None:
            record["galaxy_score"] = galaxy[i]
        if social is not None:
            record["social_score"] = social[i]
        if news is not None:
            record["news_score"] = news[i]
        records.append(record)
    return records


RISING_PRICES = [100, 110, 120, 130, 140, 150]
RISING_VOLUMES = [10, 11, 12, 13, 14, 15]


@pytest.fixture
def clock():
    return MockClock()


@pytest.fixture
def cache(clock):
    return InMemoryTTLCache(default_ttl=300, clock=clock)


@pytest.fixture
def adapter():
    """Adapter with BTC (full data), ETH (series only) and an ecosystem."""
    return MockMarketDataAdapter(
        series={
            "BTC": make_records(
                RISING_PRICES,
                volumes=RISING_VOLUMES,
                galaxy=[50, 52, 55, 60, 66, 70],
                news=[55, 56, 58, 60, 61, 65],
            ),
            "ETH": make_records(
                [200, 190, 180, 170, 160, 150],
                volumes=[20, 20, 21, 22, 23, 25],
                galaxy=[60, 58, 55, 50, 45, 40],
                social=[50, 50, 45, 40, 40, 35],
            ),
        },
        social_metrics={
            "BTC": {"sentiment": 72, "social_volume": 1500, "engagement": 0.8},
        },
        ecosystems={
            "layer1": ["BTC", "ETH", "DOGE"],
        },
    )
