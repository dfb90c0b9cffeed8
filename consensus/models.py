"""
Consensus Data Models - Signals, agent weights and consensus results.

Every object here is immutable and lives for one processing cycle.

Two consensus shapes exist:
- VotingConsensus: one result per (asset, direction) group
- BayesianConsensus: one result per asset with up/down posteriors

Both expose asset, direction, consensus_confidence and to_dict(), so
refinement and downstream consumers can treat them uniformly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from core.exceptions import InvalidConfigError


class Direction(Enum):
    """Direction claimed by a signal."""
    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> "Direction":
        return Direction.DOWN if self is Direction.UP else Direction.UP


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


# ─────────────────────────────────────────────────────────────
# Signals
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Signal:
    """
    Directional, confidence-scored claim about one asset from one agent.

    confidence and agent_accuracy are clamped to [0, 1].
    agent_accuracy is only required in bayesian mode.
    """
    asset: str
    direction: Direction
    confidence: float
    agent_id: str
    timestamp: int
    timeframe: str = "7d"
    agent_accuracy: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.direction, Direction):
            object.__setattr__(self, "direction", Direction(self.direction))
        if not 0.0 <= self.confidence <= 1.0:
            object.__setattr__(self, "confidence", _clamp_unit(self.confidence))
        if self.agent_accuracy is not None and not 0.0 <= self.agent_accuracy <= 1.0:
            object.__setattr__(self, "agent_accuracy", _clamp_unit(self.agent_accuracy))
        object.__setattr__(self, "metadata", dict(self.metadata))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "direction": self.direction.value,
            "confidence": self.confidence,
            "timeframe": self.timeframe,
            "timestamp": self.timestamp,
            "agent_id": self.agent_id,
            "agent_accuracy": self.agent_accuracy,
            "metadata": dict(self.metadata),
        }


# ─────────────────────────────────────────────────────────────
# Agent weights
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AgentWeights:
    """
    Read-only agent weight table for one cycle.

    Updates produce a new table via updated(); apply them between
    cycles only.
    """
    weights: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for agent_id, weight in self.weights.items():
            if weight <= 0:
                raise InvalidConfigError(
                    f"agent_weights.{agent_id}", weight, "weights must be positive"
                )
        object.__setattr__(self, "weights", dict(self.weights))

    def weight_for(self, agent_id: str, default: float = 1.0) -> float:
        return self.weights.get(agent_id, default)

    def normalized(self, agent_ids: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """Weights renormalized to sum 1 over agent_ids (all known agents if None)."""
        ids = list(dict.fromkeys(agent_ids)) if agent_ids is not None else list(self.weights)
        raw = {agent_id: self.weight_for(agent_id) for agent_id in ids}
        total = sum(raw.values())
        if total <= 0:
            return {agent_id: 0.0 for agent_id in ids}
        return {agent_id: w / total for agent_id, w in raw.items()}

    def updated(self, changes: Mapping[str, float]) -> "AgentWeights":
        merged = dict(self.weights)
        merged.update(changes)
        return AgentWeights(merged)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self.weights

    def __len__(self) -> int:
        return len(self.weights)


# ─────────────────────────────────────────────────────────────
# Consensus results
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class VotingConsensus:
    """Weighted vote for one (asset, direction) group."""
    asset: str
    direction: Direction
    weighted_confidence: float
    votes: int
    consensus_confidence: float
    contributing_signals: Tuple[Signal, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "direction": self.direction.value,
            "weighted_confidence": self.weighted_confidence,
            "votes": self.votes,
            "consensus_confidence": self.consensus_confidence,
            "contributing_signals": [s.to_dict() for s in self.contributing_signals],
        }


@dataclass(frozen=True)
class BayesianConsensus:
    """Posterior direction probabilities for one asset."""
    asset: str
    posterior_up: float
    posterior_down: float
    consensus_direction: Direction
    consensus_confidence: float
    signals_used: int = 0

    @property
    def direction(self) -> Direction:
        return self.consensus_direction

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "posterior_up": self.posterior_up,
            "posterior_down": self.posterior_down,
            "consensus_direction": self.consensus_direction.value,
            "consensus_confidence": self.consensus_confidence,
            "signals_used": self.signals_used,
        }


ConsensusResult = Union[VotingConsensus, BayesianConsensus]


# ─────────────────────────────────────────────────────────────
# Refinement and cycle outputs
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoundRecord:
    """What happened in one refinement round."""
    round_number: int
    participating: List[str]
    excluded: List[str]
    consensus: List[ConsensusResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round_number": self.round_number,
            "participating": list(self.participating),
            "excluded": list(self.excluded),
            "consensus": [c.to_dict() for c in self.consensus],
        }


@dataclass(frozen=True)
class RefinementResult:
    """Final state of a refinement run. has_converged=False is not an error."""
    final_consensus: List[ConsensusResult]
    rounds_executed: int
    has_converged: bool
    history: List[RoundRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_consensus": [c.to_dict() for c in self.final_consensus],
            "rounds_executed": self.rounds_executed,
            "has_converged": self.has_converged,
            "history": [r.to_dict() for r in self.history],
        }


@dataclass(frozen=True)
class CycleResult:
    """Output of one ingest -> signal -> consensus -> refine pass."""
    consensus: List[ConsensusResult]
    signals: List[Signal]
    failed_agents: Dict[str, str]
    refinement: Optional[RefinementResult]
    started_at_ms: int
    completed_at_ms: int
    misconfigured_agents: List[str] = field(default_factory=list)
    """Subset of failed_agents whose failure was a configuration error."""

    @property
    def duration_ms(self) -> int:
        return self.completed_at_ms - self.started_at_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consensus": [c.to_dict() for c in self.consensus],
            "signals": [s.to_dict() for s in self.signals],
            "failed_agents": dict(self.failed_agents),
            "misconfigured_agents": list(self.misconfigured_agents),
            "refinement": self.refinement.to_dict() if self.refinement else None,
            "started_at_ms": self.started_at_ms,
            "completed_at_ms": self.completed_at_ms,
            "duration_ms": self.duration_ms,
        }
