"""
Consensus - Refinement Coordinator.

============================================================
PURPOSE
============================================================
Lets agents revise a consensus over a bounded number of rounds.

STATE MACHINE:

    INIT ──► ROUND(1) ──► ROUND(2) ──► ... ──► ROUND(max_rounds)
      │         │            │                      │
      └─────────┴────────────┴──────────────────────┴──► DONE

    Each ROUND(k):
    - fan out evaluate_consensus(current) to every agent
    - agents that fail or exceed the budget sit this round out
    - aggregate collected opinions into a revised consensus
    - DONE if the convergence predicate holds or k == max_rounds

INVARIANTS:
- At most max_rounds rounds are executed
- DONE is terminal
- has_converged=False after an exhausted budget is a result, not an error
- A round with no opinions keeps the consensus and never converges

============================================================
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set

from core.config import EngineConfig

from .agents import BaseAgent
from .engine import ConsensusEngine
from .fanout import AgentFanOut
from .models import ConsensusResult, RefinementResult, RoundRecord, Signal


logger = logging.getLogger(__name__)


AggregationFn = Callable[[List[Signal]], List[ConsensusResult]]
ConvergencePredicate = Callable[[List[ConsensusResult], List[ConsensusResult]], bool]


# ============================================================
# STATES
# ============================================================

class RefinementState(Enum):
    INIT = "init"
    ROUND = "round"
    DONE = "done"


VALID_TRANSITIONS: Dict[RefinementState, Set[RefinementState]] = {
    RefinementState.INIT: {RefinementState.ROUND, RefinementState.DONE},
    RefinementState.ROUND: {RefinementState.ROUND, RefinementState.DONE},
    RefinementState.DONE: set(),
}


# ============================================================
# CONVERGENCE
# ============================================================

def confidence_converged(epsilon: float) -> ConvergencePredicate:
    """
    Predicate: same assets, same best direction per asset, and no
    consensus_confidence moved by more than epsilon.
    """
    def predicate(previous: List[ConsensusResult], revised: List[ConsensusResult]) -> bool:
        before = ConsensusEngine.best_per_asset(previous)
        after = ConsensusEngine.best_per_asset(revised)

        if set(before) != set(after):
            return False

        for asset, old in before.items():
            new = after[asset]
            if new.direction is not old.direction:
                return False
            if abs(new.consensus_confidence - old.consensus_confidence) > epsilon:
                return False
        return True

    return predicate


# ============================================================
# COORDINATOR
# ============================================================

class RefinementCoordinator:
    """
    Multi-round consensus refinement.

    Usage:
        coordinator = RefinementCoordinator(config=config)
        result = await coordinator.refine(initial_consensus, agents)
        if not result.has_converged:
            logger.info("Budget exhausted, using last consensus")
    """

    def __init__(
        self,
        aggregate: Optional[AggregationFn] = None,
        config: Optional[EngineConfig] = None,
        converged: Optional[ConvergencePredicate] = None,
        fan_out: Optional[AgentFanOut] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.aggregate = aggregate or ConsensusEngine(config=self.config).compute
        self.converged = converged or confidence_converged(self.config.convergence_epsilon)
        self.fan_out = fan_out or AgentFanOut(
            timeout_seconds=self.config.agent_timeout_seconds,
            max_concurrency=self.config.max_concurrent_agents,
        )
        self.max_rounds = self.config.max_rounds
        self._state = RefinementState.INIT

    @property
    def state(self) -> RefinementState:
        return self._state

    def _transition(self, to_state: RefinementState, reason: str = "") -> None:
        if to_state not in VALID_TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Invalid refinement transition: {self._state.value} -> {to_state.value}"
            )
        logger.debug(f"Refinement {self._state.value} -> {to_state.value} {reason}".rstrip())
        self._state = to_state

    async def refine(
        self,
        initial_consensus: Sequence[ConsensusResult],
        agents: Sequence[BaseAgent],
    ) -> RefinementResult:
        self._state = RefinementState.INIT
        current = list(initial_consensus)
        history: List[RoundRecord] = []
        has_converged = False
        rounds_executed = 0

        if not agents:
            self._transition(RefinementState.DONE, "(no agents)")
            return RefinementResult(current, 0, False, history)

        while rounds_executed < self.max_rounds:
            rounds_executed += 1
            self._transition(RefinementState.ROUND, f"(round {rounds_executed})")

            snapshot = list(current)
            outcome = await self.fan_out.run(
                agents,
                lambda agent: agent.evaluate_consensus(snapshot),
                phase=f"refine:{rounds_executed}",
            )
            opinions = outcome.all_signals()

            if opinions:
                revised = list(self.aggregate(opinions))
                round_converged = self.converged(snapshot, revised)
            else:
                logger.warning(f"Refinement round {rounds_executed}: no opinions collected")
                revised = snapshot
                round_converged = False

            history.append(RoundRecord(
                round_number=rounds_executed,
                participating=outcome.succeeded,
                excluded=outcome.failed,
                consensus=revised,
            ))
            current = revised

            if round_converged:
                has_converged = True
                break

        self._transition(RefinementState.DONE)
        logger.info(
            f"Refinement done: rounds={rounds_executed}, converged={has_converged}, "
            f"assets={len(ConsensusEngine.best_per_asset(current))}"
        )

        return RefinementResult(
            final_consensus=current,
            rounds_executed=rounds_executed,
            has_converged=has_converged,
            history=history,
        )
