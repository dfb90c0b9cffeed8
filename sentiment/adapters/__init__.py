"""
Upstream data adapters for the sentiment scorers.

AVAILABLE ADAPTERS:
- MarketDataAdapter: Abstract provider interface
- MockMarketDataAdapter: In-memory provider for tests
"""

from .base import MarketDataAdapter, SocialMetrics
from .mock import MockAdapterConfig, MockMarketDataAdapter


__all__ = [
    "MarketDataAdapter",
    "SocialMetrics",
    "MockMarketDataAdapter",
    "MockAdapterConfig",
]
