"""
Consensus - Agent Interface.

============================================================
PURPOSE
============================================================
Agents turn a market snapshot into signals and, during
refinement, give a revised opinion on the current consensus.

DESIGN PRINCIPLES:
- Each agent owns only its own intermediate state
- Agents never see each other's signals directly
- Fully testable with stub agents

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from core.clock import ClockProtocol, SystemClock

from sentiment.analyzer import DEFAULT_SOURCES, SentimentAnalyzer
from sentiment.models import FusionResult, SourceName, Trend

from .models import ConsensusResult, Direction, Signal


logger = logging.getLogger(__name__)


# ============================================================
# MARKET SNAPSHOT
# ============================================================

@dataclass(frozen=True)
class MarketSnapshot:
    """Input handed to every agent at the start of a cycle."""

    assets: List[str]
    """Assets to produce signals for."""

    timeframe: str = "7d"
    """Analysis timeframe."""

    timestamp: int = 0
    """Snapshot time in epoch milliseconds (0 = use the agent clock)."""

    data: Dict[str, Any] = field(default_factory=dict)
    """Opaque extra data for custom agents."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "assets", list(self.assets))
        object.__setattr__(self, "data", dict(self.data))


# ============================================================
# AGENT INTERFACE
# ============================================================

class BaseAgent(ABC):
    """
    Independent producer of signals.

    Subclasses implement process(). evaluate_consensus() defaults to
    restating the agent's most recent signals for the assets under
    discussion.
    """

    def __init__(self, agent_id: str, accuracy: Optional[float] = None) -> None:
        self.agent_id = agent_id
        self.accuracy = accuracy
        self._last_signals: List[Signal] = []

    @abstractmethod
    async def process(self, market_data: MarketSnapshot) -> List[Signal]:
        """Produce this cycle's signals."""
        pass

    async def evaluate_consensus(self, consensus: Sequence[ConsensusResult]) -> List[Signal]:
        """Return this agent's opinion on the current consensus."""
        assets = {c.asset for c in consensus}
        return [s for s in self._last_signals if s.asset in assets]

    def remember(self, signals: List[Signal]) -> List[Signal]:
        self._last_signals = list(signals)
        return signals

    def __repr__(self) -> str:
        return f"{type(self).__name__}(agent_id={self.agent_id!r})"


# ============================================================
# FUSION TO SIGNAL
# ============================================================

def signal_from_fusion(
    asset: str,
    fusion: FusionResult,
    agent_id: str,
    timestamp: int,
    timeframe: str = "7d",
    agent_accuracy: Optional[float] = None,
) -> Optional[Signal]:
    """
    Convert a fused sentiment result to a Signal.

    Above 0.5 normalized is up, below is down. At exactly 0.5 the trend
    decides, and a stable trend produces no signal.
    """
    if fusion.normalized > 0.5:
        direction = Direction.UP
    elif fusion.normalized < 0.5:
        direction = Direction.DOWN
    elif fusion.trend is Trend.RISING:
        direction = Direction.UP
    elif fusion.trend is Trend.FALLING:
        direction = Direction.DOWN
    else:
        return None

    return Signal(
        asset=asset,
        direction=direction,
        confidence=min(1.0, fusion.confidence),
        agent_id=agent_id,
        timestamp=timestamp,
        timeframe=timeframe,
        agent_accuracy=agent_accuracy,
        metadata={
            "score": fusion.score,
            "trend": fusion.trend.value,
            "sources": sorted(fusion.breakdown),
        },
    )


# ============================================================
# SENTIMENT AGENT
# ============================================================

class SentimentAgent(BaseAgent):
    """
    Agent backed by a SentimentAnalyzer.

    Emits one signal per asset that has fused sentiment; assets with no
    data or a flat neutral reading are skipped.
    """

    def __init__(
        self,
        agent_id: str,
        analyzer: SentimentAnalyzer,
        accuracy: Optional[float] = None,
        sources: Sequence[Union[SourceName, str]] = DEFAULT_SOURCES,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        super().__init__(agent_id, accuracy)
        self.analyzer = analyzer
        self.sources = tuple(sources)
        self.clock = clock or SystemClock()
        self._timeframe = analyzer.config.default_timeframe

    async def process(self, market_data: MarketSnapshot) -> List[Signal]:
        self._timeframe = market_data.timeframe
        timestamp = market_data.timestamp or self.clock.now_ms()

        signals = await self._signals_for(market_data.assets, timestamp)
        logger.info(
            f"[{self.agent_id}] {len(signals)} signals for {len(market_data.assets)} assets"
        )
        return self.remember(signals)

    async def evaluate_consensus(self, consensus: Sequence[ConsensusResult]) -> List[Signal]:
        assets = list(dict.fromkeys(c.asset for c in consensus))
        signals = await self._signals_for(assets, self.clock.now_ms())
        return self.remember(signals)

    async def _signals_for(self, assets: List[str], timestamp: int) -> List[Signal]:
        fused = await self.analyzer.analyze_many(assets, self._timeframe, self.sources)

        signals = []
        for asset, result in fused.items():
            if result is None:
                continue
            signal = signal_from_fusion(
                asset,
                result,
                agent_id=self.agent_id,
                timestamp=timestamp,
                timeframe=self._timeframe,
                agent_accuracy=self.accuracy,
            )
            if signal is not None:
                signals.append(signal)
        return signals
