"""
Consensus Engine - Combines agent signals into per-asset decisions.

Algorithms:
- Weighted voting (order independent):
    weighted_confidence  = sum(confidence * weight(agent))
    consensus_confidence = weighted_confidence / sum(weight(agent))
  one result per (asset, direction), sorted by consensus_confidence desc.
  Competing up/down groups for one asset both survive; use
  best_per_asset() to pick one.

- Bayesian aggregation (order dependent):
    prior 0.5 / 0.5 per asset, then for each signal
    adjusted  = confidence * agent_accuracy
    posterior = adjusted * prior / (adjusted * prior + (1 - adjusted) * (1 - prior))
  applied to the probability matching the signal direction; the other
  side is always 1 - posterior.

  The update is sequential, so signal order changes the result. Signals
  are sorted by (timestamp, agent_id) unless the config selects INPUT
  ordering, in which case the caller's order is used as given.

Both algorithms are pure: no state is kept between calls.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from core.config import BayesianOrdering, ConsensusAlgorithm, EngineConfig
from core.exceptions import MissingAgentAccuracyError

from .models import (
    AgentWeights,
    BayesianConsensus,
    ConsensusResult,
    Direction,
    Signal,
    VotingConsensus,
)


logger = logging.getLogger(__name__)


UNINFORMATIVE_PRIOR = 0.5


class ConsensusEngine:
    """
    Stateless consensus over one cycle's signals.

    Usage:
        engine = ConsensusEngine(AgentWeights({"momentum": 2.0, "sentiment": 1.0}))
        results = engine.compute(signals)
        decisions = ConsensusEngine.best_per_asset(results)
    """

    def __init__(
        self,
        weights: Optional[AgentWeights] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.weights = weights if weights is not None else AgentWeights()
        self.config = config or EngineConfig()

    def compute(
        self,
        signals: Sequence[Signal],
        assets: Optional[Iterable[str]] = None,
    ) -> List[ConsensusResult]:
        """Run the configured algorithm."""
        if self.config.consensus_algorithm is ConsensusAlgorithm.BAYESIAN:
            return list(self.bayesian_aggregation(signals, assets))
        return list(self.weighted_voting_consensus(signals))

    # ─────────────────────────────────────────────────────────────
    # Weighted voting
    # ─────────────────────────────────────────────────────────────

    def weighted_voting_consensus(self, signals: Sequence[Signal]) -> List[VotingConsensus]:
        groups: Dict[tuple, List[Signal]] = {}
        for signal in signals:
            groups.setdefault((signal.asset, signal.direction), []).append(signal)

        results = []
        for (asset, direction), group in groups.items():
            weighted_confidence = 0.0
            total_weight = 0.0
            for signal in group:
                weight = self.weights.weight_for(signal.agent_id)
                weighted_confidence += signal.confidence * weight
                total_weight += weight

            consensus_confidence = weighted_confidence / total_weight if total_weight > 0 else 0.0

            results.append(VotingConsensus(
                asset=asset,
                direction=direction,
                weighted_confidence=weighted_confidence,
                votes=len(group),
                consensus_confidence=consensus_confidence,
                contributing_signals=tuple(group),
            ))

        results.sort(key=lambda r: r.consensus_confidence, reverse=True)

        logger.debug(f"Voting consensus: {len(signals)} signals -> {len(results)} groups")
        return results

    # ─────────────────────────────────────────────────────────────
    # Bayesian aggregation
    # ─────────────────────────────────────────────────────────────

    def bayesian_aggregation(
        self,
        signals: Sequence[Signal],
        assets: Optional[Iterable[str]] = None,
    ) -> List[BayesianConsensus]:
        """
        Sequential Bayesian update per asset.

        Assets listed in assets but without signals keep the 0.5 / 0.5 prior.

        Raises:
            MissingAgentAccuracyError: A signal has no agent_accuracy
        """
        for signal in signals:
            if signal.agent_accuracy is None:
                logger.error(
                    f"Bayesian aggregation rejected signal from {signal.agent_id} "
                    f"for {signal.asset}: missing agent_accuracy"
                )
                raise MissingAgentAccuracyError(signal.agent_id, signal.asset)

        by_asset: Dict[str, List[Signal]] = {}
        for asset in assets or ():
            by_asset.setdefault(asset, [])
        for signal in signals:
            by_asset.setdefault(signal.asset, []).append(signal)

        results = []
        for asset, asset_signals in by_asset.items():
            ordered = self._order_for_update(asset_signals)

            posterior_up = UNINFORMATIVE_PRIOR
            posterior_down = UNINFORMATIVE_PRIOR
            for signal in ordered:
                adjusted = signal.confidence * signal.agent_accuracy
                if signal.direction is Direction.UP:
                    posterior_up = bayesian_update(posterior_up, adjusted)
                    posterior_down = 1 - posterior_up
                else:
                    posterior_down = bayesian_update(posterior_down, adjusted)
                    posterior_up = 1 - posterior_down

            direction = Direction.UP if posterior_up > posterior_down else Direction.DOWN

            results.append(BayesianConsensus(
                asset=asset,
                posterior_up=posterior_up,
                posterior_down=posterior_down,
                consensus_direction=direction,
                consensus_confidence=max(posterior_up, posterior_down),
                signals_used=len(ordered),
            ))

        logger.debug(f"Bayesian aggregation: {len(signals)} signals -> {len(results)} assets")
        return results

    def _order_for_update(self, signals: List[Signal]) -> List[Signal]:
        if self.config.bayesian_ordering is BayesianOrdering.INPUT:
            return list(signals)
        return sorted(signals, key=lambda s: (s.timestamp, s.agent_id))

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def best_per_asset(results: Iterable[ConsensusResult]) -> Dict[str, ConsensusResult]:
        """Highest consensus_confidence result per asset (ties keep the first)."""
        best: Dict[str, ConsensusResult] = {}
        for result in results:
            current = best.get(result.asset)
            if current is None or result.consensus_confidence > current.consensus_confidence:
                best[result.asset] = result
        return best


def bayesian_update(prior: float, likelihood: float) -> float:
    """One update step. A zero denominator leaves the prior unchanged."""
    denominator = likelihood * prior + (1 - likelihood) * (1 - prior)
    if denominator == 0:
        return prior
    return (likelihood * prior) / denominator
