"""
Processing Cycle Tests.

============================================================
PURPOSE
============================================================
End-to-end tests for one cycle: agent fan-out, barrier,
consensus and optional refinement.

============================================================
"""

import pytest

from core.clock import MockClock
from core.config import ConsensusAlgorithm, EngineConfig
from core.exceptions import InvalidConfigError, MissingAdapterError, MissingAgentAccuracyError
from consensus.agents import SentimentAgent
from consensus.cycle import ProcessingCycle
from consensus.engine import ConsensusEngine
from consensus.models import AgentWeights, BayesianConsensus, Direction, VotingConsensus
from sentiment.analyzer import SentimentAnalyzer

from .conftest import ScriptedAgent


UP = Direction.UP
DOWN = Direction.DOWN


class TestProcessingCycle:
    """Tests for ProcessingCycle.run."""

    @pytest.mark.asyncio
    async def test_weighted_voting_cycle(self, snapshot):
        agents = [
            ScriptedAgent("A", signals=[("BTC", UP, 0.9)]),
            ScriptedAgent("B", signals=[("BTC", UP, 0.6)]),
        ]
        cycle = ProcessingCycle(weights=AgentWeights({"A": 2.0, "B": 1.0}))

        result = await cycle.run(agents, snapshot)

        assert len(result.signals) == 2
        assert result.failed_agents == {}
        assert result.refinement is None
        assert isinstance(result.consensus[0], VotingConsensus)
        assert result.consensus[0].consensus_confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_failed_and_slow_agents_excluded(self, snapshot):
        config = EngineConfig(agent_timeout_seconds=0.05)
        agents = [
            ScriptedAgent("ok", signals=[("BTC", UP, 0.7)]),
            ScriptedAgent("slow", signals=[("BTC", DOWN, 0.9)], delay=1.0),
            ScriptedAgent("broken", error=RuntimeError("feed down")),
        ]

        result = await ProcessingCycle(config=config).run(agents, snapshot)

        assert set(result.failed_agents) == {"slow", "broken"}
        assert "feed down" in result.failed_agents["broken"]
        assert result.misconfigured_agents == []
        assert [s.agent_id for s in result.signals] == ["ok"]
        assert [(c.asset, c.direction) for c in result.consensus] == [("BTC", UP)]

    @pytest.mark.asyncio
    async def test_misconfigured_agent_reported(self, snapshot):
        agents = [
            ScriptedAgent("ok", signals=[("BTC", UP, 0.7)]),
            ScriptedAgent("no_feed", error=MissingAdapterError("social")),
        ]

        result = await ProcessingCycle().run(agents, snapshot)

        assert set(result.failed_agents) == {"no_feed"}
        assert result.misconfigured_agents == ["no_feed"]
        assert result.to_dict()["misconfigured_agents"] == ["no_feed"]
        assert [s.agent_id for s in result.signals] == ["ok"]

    @pytest.mark.asyncio
    async def test_all_agents_fail(self, snapshot):
        agents = [ScriptedAgent("broken", error=RuntimeError("down"))]

        result = await ProcessingCycle().run(agents, snapshot)

        assert result.consensus == []
        assert result.signals == []

    @pytest.mark.asyncio
    async def test_bayesian_cycle_reports_every_asset(self, snapshot):
        config = EngineConfig(consensus_algorithm=ConsensusAlgorithm.BAYESIAN)
        agents = [ScriptedAgent("a", signals=[("BTC", UP, 0.8)], accuracy=0.75)]

        result = await ProcessingCycle(config=config).run(agents, snapshot)

        by_asset = {c.asset: c for c in result.consensus}
        assert all(isinstance(c, BayesianConsensus) for c in result.consensus)
        assert by_asset["BTC"].posterior_up == pytest.approx(0.6)
        assert by_asset["ETH"].posterior_up == 0.5

    @pytest.mark.asyncio
    async def test_bayesian_without_accuracy_surfaces(self, snapshot):
        config = EngineConfig(consensus_algorithm=ConsensusAlgorithm.BAYESIAN)
        agents = [ScriptedAgent("a", signals=[("BTC", UP, 0.8)])]

        with pytest.raises(MissingAgentAccuracyError):
            await ProcessingCycle(config=config).run(agents, snapshot)

    @pytest.mark.asyncio
    async def test_refinement(self, snapshot):
        agents = [
            ScriptedAgent("a", signals=[("BTC", UP, 0.7)]),
            ScriptedAgent("b", signals=[("BTC", UP, 0.5)]),
            ScriptedAgent("broken", error=RuntimeError("down")),
        ]

        result = await ProcessingCycle(refine=True).run(agents, snapshot)

        assert result.refinement is not None
        assert result.refinement.has_converged is True
        assert result.refinement.rounds_executed == 1
        assert result.refinement.history[0].participating == ["a", "b"]
        assert result.consensus == result.refinement.final_consensus
        assert agents[2].evaluate_calls == 0

    @pytest.mark.asyncio
    async def test_timestamps(self, snapshot):
        clock = MockClock()

        result = await ProcessingCycle(clock=clock).run([], snapshot)

        assert result.started_at_ms == clock.now_ms()
        assert result.duration_ms == 0
        assert result.to_dict()["consensus"] == []

    def test_invalid_config_rejected(self):
        with pytest.raises(InvalidConfigError):
            ProcessingCycle(config=EngineConfig(max_concurrent_agents=0))

    @pytest.mark.asyncio
    async def test_sentiment_agents_end_to_end(self, adapter, snapshot):
        analyzer = SentimentAnalyzer(adapter)
        agents = [
            SentimentAgent("sentiment_fast", analyzer, accuracy=0.7),
            SentimentAgent("sentiment_slow", analyzer, accuracy=0.6),
        ]
        config = EngineConfig(consensus_algorithm=ConsensusAlgorithm.BAYESIAN)

        result = await ProcessingCycle(config=config).run(agents, snapshot, refine=True)

        decisions = ConsensusEngine.best_per_asset(result.consensus)
        assert decisions["BTC"].direction is UP
        assert decisions["ETH"].direction is DOWN
        assert result.refinement.rounds_executed <= config.max_rounds
