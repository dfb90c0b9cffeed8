"""
Consensus - Bounded Agent Fan-Out.

Runs one coroutine per agent concurrently, at most max_concurrency at
a time, each under its own latency budget, and joins them all at a
single barrier. A slow or failing agent is recorded and excluded; it
never blocks or cancels the others and is never retried.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Sequence

from core.exceptions import (
    AgentEvaluationError,
    AgentTimeoutError,
    ConfigurationError,
    CoordinationError,
    ErrorClassification,
    InvalidConfigError,
    classify_exception,
    describe_exception,
)

from .agents import BaseAgent
from .models import Signal


logger = logging.getLogger(__name__)


AgentCall = Callable[[BaseAgent], Awaitable[List[Signal]]]


@dataclass
class FanOutResult:
    """Signals per agent that finished, errors per agent that did not."""

    signals: Dict[str, List[Signal]] = field(default_factory=dict)
    failures: Dict[str, CoordinationError] = field(default_factory=dict)

    @property
    def succeeded(self) -> List[str]:
        return list(self.signals)

    @property
    def failed(self) -> List[str]:
        return list(self.failures)

    @property
    def misconfigured(self) -> List[str]:
        """Failed agents whose underlying error was a configuration error."""
        return [
            agent_id for agent_id, error in self.failures.items()
            if isinstance(error.cause, ConfigurationError)
        ]

    def all_signals(self) -> List[Signal]:
        """Signals of every successful agent, in agent order."""
        return [s for signals in self.signals.values() for s in signals]


class AgentFanOut:
    """
    Usage:
        fan_out = AgentFanOut(timeout_seconds=5.0, max_concurrency=4)
        result = await fan_out.run(agents, lambda a: a.process(snapshot), "process")
    """

    def __init__(self, timeout_seconds: float = 10.0, max_concurrency: int = 10) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max(1, max_concurrency)

    async def run(
        self,
        agents: Sequence[BaseAgent],
        call: AgentCall,
        phase: str = "process",
    ) -> FanOutResult:
        ids = [a.agent_id for a in agents]
        if len(set(ids)) != len(ids):
            raise InvalidConfigError("agents", ids, "agent ids must be unique")

        semaphore = asyncio.Semaphore(self.max_concurrency)

        tasks = {
            agent.agent_id: asyncio.create_task(
                self._invoke(agent, call, phase, semaphore),
                name=f"{phase}:{agent.agent_id}",
            )
            for agent in agents
        }

        results = await asyncio.gather(*tasks.values(), return_exceptions=True)

        outcome = FanOutResult()
        for agent_id, result in zip(tasks.keys(), results):
            if isinstance(result, CoordinationError):
                outcome.failures[agent_id] = result
            elif isinstance(result, BaseException):
                outcome.failures[agent_id] = AgentEvaluationError(agent_id, result, phase)
            else:
                outcome.signals[agent_id] = list(result or [])

        if outcome.failures:
            logger.warning(
                f"[{phase}] {len(outcome.failures)}/{len(agents)} agents excluded: "
                f"{', '.join(outcome.failed)}"
            )
        return outcome

    async def _invoke(
        self,
        agent: BaseAgent,
        call: AgentCall,
        phase: str,
        semaphore: asyncio.Semaphore,
    ) -> List[Signal]:
        async with semaphore:
            try:
                return await asyncio.wait_for(call(agent), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Agent {agent.agent_id} timed out after {self.timeout_seconds}s ({phase})"
                )
                raise AgentTimeoutError(agent.agent_id, self.timeout_seconds, phase)
            except Exception as e:
                if classify_exception(e) is ErrorClassification.NON_RECOVERABLE:
                    logger.error(
                        f"Agent {agent.agent_id} failed permanently ({phase}): {describe_exception(e)}"
                    )
                else:
                    logger.warning(f"Agent {agent.agent_id} error ({phase}): {describe_exception(e)}")
                raise AgentEvaluationError(agent.agent_id, e, phase)
