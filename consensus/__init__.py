"""
Consensus Layer - Agent signals to per-asset decisions.

This package provides:
- Signal / AgentWeights / consensus result models
- ConsensusEngine: weighted voting or Bayesian aggregation
- Agent interface and a sentiment-backed agent
- RefinementCoordinator: bounded multi-round revision
- ProcessingCycle: fan-out, barrier, consensus, refinement

Usage:
    from consensus import (
        AgentWeights, ConsensusEngine, MarketSnapshot,
        ProcessingCycle, SentimentAgent,
    )

    cycle = ProcessingCycle(config=config, weights=AgentWeights({"sentiment": 2.0}))
    result = await cycle.run(agents, MarketSnapshot(assets=["BTC"]), refine=True)

    decisions = ConsensusEngine.best_per_asset(result.consensus)
"""

from .agents import BaseAgent, MarketSnapshot, SentimentAgent, signal_from_fusion
from .cycle import ProcessingCycle
from .engine import ConsensusEngine, bayesian_update
from .fanout import AgentFanOut, FanOutResult
from .models import (
    AgentWeights,
    BayesianConsensus,
    ConsensusResult,
    CycleResult,
    Direction,
    RefinementResult,
    RoundRecord,
    Signal,
    VotingConsensus,
)
from .refinement import (
    VALID_TRANSITIONS,
    RefinementCoordinator,
    RefinementState,
    confidence_converged,
)


__all__ = [
    # Models
    "Direction",
    "Signal",
    "AgentWeights",
    "VotingConsensus",
    "BayesianConsensus",
    "ConsensusResult",
    "RoundRecord",
    "RefinementResult",
    "CycleResult",

    # Engine
    "ConsensusEngine",
    "bayesian_update",

    # Agents
    "BaseAgent",
    "MarketSnapshot",
    "SentimentAgent",
    "signal_from_fusion",
    "AgentFanOut",
    "FanOutResult",

    # Refinement
    "RefinementCoordinator",
    "RefinementState",
    "VALID_TRANSITIONS",
    "confidence_converged",

    # Cycle
    "ProcessingCycle",
]
