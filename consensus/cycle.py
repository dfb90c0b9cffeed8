"""
Consensus - Processing Cycle.

One pass of: fan out process() to every agent -> barrier ->
consensus -> optional refinement.

Configuration and agent weights are read once at the start of the
cycle and are not touched again until the next one. Agents that fail
or time out are reported in CycleResult.failed_agents, and those
that failed on a configuration error are also listed in
misconfigured_agents. The cycle proceeds with whatever the other
agents produced.
"""

import logging
from typing import Optional, Sequence

from core.clock import ClockProtocol, SystemClock
from core.config import EngineConfig

from .agents import BaseAgent, MarketSnapshot
from .engine import ConsensusEngine
from .fanout import AgentFanOut
from .models import AgentWeights, CycleResult
from .refinement import RefinementCoordinator


logger = logging.getLogger(__name__)


class ProcessingCycle:
    """
    Usage:
        cycle = ProcessingCycle(config=EngineConfig.from_env(), weights=weights)
        result = await cycle.run(agents, MarketSnapshot(assets=["BTC", "ETH"]))
        for asset, decision in ConsensusEngine.best_per_asset(result.consensus).items():
            ...
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        weights: Optional[AgentWeights] = None,
        clock: Optional[ClockProtocol] = None,
        refine: bool = False,
    ) -> None:
        self.config = (config or EngineConfig()).require_valid()
        self.weights = weights if weights is not None else AgentWeights()
        self.clock = clock or SystemClock()
        self.refine = refine

        self.engine = ConsensusEngine(self.weights, self.config)
        self.fan_out = AgentFanOut(
            timeout_seconds=self.config.agent_timeout_seconds,
            max_concurrency=self.config.max_concurrent_agents,
        )

    async def run(
        self,
        agents: Sequence[BaseAgent],
        market_data: MarketSnapshot,
        refine: Optional[bool] = None,
    ) -> CycleResult:
        started_at_ms = self.clock.now_ms()
        refine = self.refine if refine is None else refine

        logger.info(
            f"Cycle start: agents={len(agents)}, assets={len(market_data.assets)}, "
            f"algorithm={self.config.consensus_algorithm.value}"
        )

        outcome = await self.fan_out.run(
            agents,
            lambda agent: agent.process(market_data),
            phase="process",
        )
        signals = outcome.all_signals()

        consensus = self.engine.compute(signals, market_data.assets)

        refinement = None
        if refine:
            participating = [a for a in agents if a.agent_id in outcome.signals]
            coordinator = RefinementCoordinator(
                aggregate=self.engine.compute,
                config=self.config,
                fan_out=self.fan_out,
            )
            refinement = await coordinator.refine(consensus, participating)
            consensus = refinement.final_consensus

        completed_at_ms = self.clock.now_ms()

        misconfigured = outcome.misconfigured
        if misconfigured:
            logger.error(f"Misconfigured agents excluded from cycle: {', '.join(misconfigured)}")

        logger.info(
            f"Cycle complete: signals={len(signals)}, results={len(consensus)}, "
            f"failed_agents={len(outcome.failures)}"
        )

        return CycleResult(
            consensus=consensus,
            signals=signals,
            failed_agents={k: v.message for k, v in outcome.failures.items()},
            misconfigured_agents=misconfigured,
            refinement=refinement,
            started_at_ms=started_at_ms,
            completed_at_ms=completed_at_ms,
        )
