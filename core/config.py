"""
Core Module - Engine Configuration.

============================================================
PURPOSE
============================================================
All configuration for scoring, fusion, consensus and refinement.

CRITICAL CONSTRAINTS:
- Loaded once per processing cycle
- Never mutated while a cycle is running
- Invalid configuration fails fast

============================================================
ENVIRONMENT VARIABLES
============================================================
CONSENSUS_SOURCE_WEIGHTS        social:0.6,news:0.3,market:0.1
CONSENSUS_TREND_THRESHOLD       0.05
CONSENSUS_AVG_PERIODS           3
CONSENSUS_MAX_CORRELATION_LAG   7
CONSENSUS_MIN_DATA_POINTS       3
CONSENSUS_ALGORITHM             voting | bayesian
CONSENSUS_BAYESIAN_ORDERING     timestamp | input
CONSENSUS_MAX_ROUNDS            3
CONSENSUS_CONVERGENCE_EPSILON   0.01
CONSENSUS_AGENT_TIMEOUT_SECONDS 10
CONSENSUS_MAX_CONCURRENT_AGENTS 10
CONSENSUS_CACHE_TTL_SECONDS     300
CONSENSUS_DEFAULT_TIMEFRAME     7d
LOG_LEVEL                       INFO

============================================================
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .exceptions import InvalidConfigError


# ============================================================
# SELECTORS
# ============================================================

class ConsensusAlgorithm(Enum):
    """Algorithm used to combine agent signals."""

    VOTING = "voting"
    """Weighted voting per (asset, direction)."""

    BAYESIAN = "bayesian"
    """Sequential Bayesian update per asset."""


class BayesianOrdering(Enum):
    """Order in which an asset's signals are fed to the Bayesian update."""

    TIMESTAMP = "timestamp"
    """Sort by (timestamp, agent id). Deterministic under concurrent collection."""

    INPUT = "input"
    """Keep the order the caller supplied."""


DEFAULT_SOURCE_WEIGHTS: Dict[str, float] = {
    "social": 0.6,
    "news": 0.3,
    "market": 0.1,
}


# ============================================================
# ENGINE CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class EngineConfig:
    """Static configuration for one processing cycle."""

    # Fusion
    source_weights: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SOURCE_WEIGHTS)
    )
    """Per-source fusion weights. Must sum to a positive number."""

    # Statistics
    trend_threshold: float = 0.05
    """Relative change needed to call a trend rising/falling."""

    avg_periods: int = 3
    """Window size used for recent/older averages."""

    max_correlation_lag: int = 7
    """Largest lag tested by the optimal-lag search."""

    min_data_points: int = 3
    """Minimum points for a correlation to be computed."""

    # Consensus
    consensus_algorithm: ConsensusAlgorithm = ConsensusAlgorithm.VOTING
    """Selected consensus algorithm."""

    bayesian_ordering: BayesianOrdering = BayesianOrdering.TIMESTAMP
    """Signal ordering rule for the Bayesian update."""

    # Refinement
    max_rounds: int = 3
    """Upper bound on refinement rounds."""

    convergence_epsilon: float = 0.01
    """Max per-asset confidence change still considered converged."""

    # Runtime
    agent_timeout_seconds: float = 10.0
    """Latency budget for one agent invocation."""

    max_concurrent_agents: int = 10
    """Upper bound on agent tasks running at once."""

    cache_ttl_seconds: float = 300
    """TTL for cached scores and fusion results."""

    default_timeframe: str = "7d"
    """Timeframe used when the caller does not pass one."""

    log_level: str = "INFO"
    """Logging level."""

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "EngineConfig":
        """Load configuration from environment variables (and .env if present)."""
        load_dotenv(dotenv_path)

        weights_raw = os.getenv("CONSENSUS_SOURCE_WEIGHTS")
        return cls(
            source_weights=(
                parse_weights(weights_raw) if weights_raw else dict(DEFAULT_SOURCE_WEIGHTS)
            ),
            trend_threshold=float(os.getenv("CONSENSUS_TREND_THRESHOLD", "0.05")),
            avg_periods=int(os.getenv("CONSENSUS_AVG_PERIODS", "3")),
            max_correlation_lag=int(os.getenv("CONSENSUS_MAX_CORRELATION_LAG", "7")),
            min_data_points=int(os.getenv("CONSENSUS_MIN_DATA_POINTS", "3")),
            consensus_algorithm=ConsensusAlgorithm(
                os.getenv("CONSENSUS_ALGORITHM", "voting").lower()
            ),
            bayesian_ordering=BayesianOrdering(
                os.getenv("CONSENSUS_BAYESIAN_ORDERING", "timestamp").lower()
            ),
            max_rounds=int(os.getenv("CONSENSUS_MAX_ROUNDS", "3")),
            convergence_epsilon=float(os.getenv("CONSENSUS_CONVERGENCE_EPSILON", "0.01")),
            agent_timeout_seconds=float(os.getenv("CONSENSUS_AGENT_TIMEOUT_SECONDS", "10")),
            max_concurrent_agents=int(os.getenv("CONSENSUS_MAX_CONCURRENT_AGENTS", "10")),
            cache_ttl_seconds=float(os.getenv("CONSENSUS_CACHE_TTL_SECONDS", "300")),
            default_timeframe=os.getenv("CONSENSUS_DEFAULT_TIMEFRAME", "7d"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if any(w < 0 for w in self.source_weights.values()):
            errors.append("source_weights must be non-negative")
        if sum(self.source_weights.values()) <= 0:
            errors.append("source_weights must sum to a positive number")

        if self.trend_threshold < 0:
            errors.append("trend_threshold must be non-negative")

        if self.avg_periods < 1:
            errors.append("avg_periods must be at least 1")

        if self.max_correlation_lag < 0:
            errors.append("max_correlation_lag must be non-negative")

        if self.min_data_points < 2:
            errors.append("min_data_points must be at least 2")

        if self.max_rounds < 1:
            errors.append("max_rounds must be at least 1")

        if self.convergence_epsilon < 0:
            errors.append("convergence_epsilon must be non-negative")

        if self.agent_timeout_seconds <= 0:
            errors.append("agent_timeout_seconds must be positive")

        if self.max_concurrent_agents < 1:
            errors.append("max_concurrent_agents must be at least 1")

        return errors

    def require_valid(self) -> "EngineConfig":
        """Raise InvalidConfigError on the first validation problem."""
        errors = self.validate()
        if errors:
            key = errors[0].split(" ", 1)[0]
            raise InvalidConfigError(key, getattr(self, key, None), errors[0])
        return self


# ============================================================
# HELPERS
# ============================================================

def parse_weights(raw: str) -> Dict[str, float]:
    """
    Parse "name:weight,name:weight" into a dict.

    Raises:
        InvalidConfigError: On a malformed pair
    """
    weights: Dict[str, float] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        name, sep, value = pair.partition(":")
        if not sep or not name.strip():
            raise InvalidConfigError("source_weights", raw, f"malformed pair '{pair}'")
        try:
            weights[name.strip()] = float(value)
        except ValueError:
            raise InvalidConfigError("source_weights", raw, f"non-numeric weight in '{pair}'")
    return weights


def present_weight_total(
    weights: Mapping[str, float],
    present: Mapping[str, object],
) -> float:
    """Sum of weights for the sources actually present."""
    return sum(weights.get(name, 0.0) for name in present)


__all__ = [
    "ConsensusAlgorithm",
    "BayesianOrdering",
    "DEFAULT_SOURCE_WEIGHTS",
    "EngineConfig",
    "parse_weights",
    "present_weight_total",
]
