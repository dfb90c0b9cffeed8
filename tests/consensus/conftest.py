"""Shared agents and fixtures for consensus tests."""

import asyncio
from typing import List, Optional, Sequence

import pytest

from consensus.agents import BaseAgent, MarketSnapshot
from consensus.models import ConsensusResult, Direction, Signal
from sentiment.adapters import MockMarketDataAdapter

from tests.sentiment.conftest import make_records


def make_signal(
    agent_id: str,
    confidence: float,
    direction: Direction = Direction.UP,
    asset: str = "BTC",
    timestamp: int = 0,
    accuracy: Optional[float] = None,
) -> Signal:
    return Signal(
        asset=asset,
        direction=direction,
        confidence=confidence,
        agent_id=agent_id,
        timestamp=timestamp,
        agent_accuracy=accuracy,
    )


class ScriptedAgent(BaseAgent):
    """
    Agent returning fixed signals.

    opinions: one list of (asset, direction, confidence) per refinement
    round; the last entry repeats once the script runs out.
    """

    def __init__(
        self,
        agent_id: str,
        signals: Sequence[tuple] = (),
        opinions: Sequence[Sequence[tuple]] = (),
        accuracy: Optional[float] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
        fail_on_round: Optional[int] = None,
    ) -> None:
        super().__init__(agent_id, accuracy)
        self.signals = list(signals)
        self.opinions = [list(o) for o in opinions]
        self.delay = delay
        self.error = error
        self.fail_on_round = fail_on_round
        self.process_calls = 0
        self.evaluate_calls = 0

    def _build(self, entries, timestamp: int = 0) -> List[Signal]:
        return [
            make_signal(self.agent_id, conf, direction, asset, timestamp, self.accuracy)
            for asset, direction, conf in entries
        ]

    async def process(self, market_data: MarketSnapshot) -> List[Signal]:
        self.process_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.remember(self._build(self.signals, market_data.timestamp))

    async def evaluate_consensus(self, consensus: Sequence[ConsensusResult]) -> List[Signal]:
        self.evaluate_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on_round == self.evaluate_calls:
            raise RuntimeError(f"{self.agent_id} failed in round {self.evaluate_calls}")
        if not self.opinions:
            return await super().evaluate_consensus(consensus)
        index = min(self.evaluate_calls, len(self.opinions)) - 1
        return self._build(self.opinions[index])


@pytest.fixture
def snapshot():
    return MarketSnapshot(assets=["BTC", "ETH"], timeframe="7d", timestamp=1_704_067_200_000)


@pytest.fixture
def adapter():
    """BTC with bullish data, ETH with bearish data."""
    return MockMarketDataAdapter(
        series={
            "BTC": make_records(
                [100, 110, 120, 130, 140, 150],
                volumes=[10, 11, 12, 13, 14, 15],
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
    )
