"""
Core Module Package.

Infrastructure shared by the sentiment and consensus packages.

Components:
- exceptions: Exception hierarchy (hard vs soft failures)
- config: Engine configuration
- clock: Injectable clock
- cache: TTL cache abstraction
- logging_config: Logging setup
"""

from .cache import CacheProtocol, InMemoryTTLCache, NullCache
from .clock import ClockProtocol, MockClock, SystemClock, datetime_to_ms, ms_to_datetime
from .config import (
    DEFAULT_SOURCE_WEIGHTS,
    BayesianOrdering,
    ConsensusAlgorithm,
    EngineConfig,
    parse_weights,
    present_weight_total,
)
from .exceptions import (
    AgentEvaluationError,
    AgentTimeoutError,
    AggregationException,
    ConfigurationError,
    CoordinationError,
    DataError,
    DataUnavailableError,
    DataValidationError,
    ErrorClassification,
    InvalidConfigError,
    MissingAdapterError,
    MissingAgentAccuracyError,
    SeriesOrderingError,
    Severity,
    classify_exception,
    describe_exception,
    is_soft_failure,
    wrap_exception,
)
from .logging_config import JsonFormatter, setup_logging


__all__ = [
    # Cache
    "CacheProtocol",
    "InMemoryTTLCache",
    "NullCache",

    # Clock
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ms_to_datetime",
    "datetime_to_ms",

    # Config
    "EngineConfig",
    "ConsensusAlgorithm",
    "BayesianOrdering",
    "DEFAULT_SOURCE_WEIGHTS",
    "parse_weights",
    "present_weight_total",

    # Exceptions
    "Severity",
    "ErrorClassification",
    "AggregationException",
    "ConfigurationError",
    "InvalidConfigError",
    "MissingAdapterError",
    "MissingAgentAccuracyError",
    "DataError",
    "DataUnavailableError",
    "DataValidationError",
    "SeriesOrderingError",
    "CoordinationError",
    "AgentTimeoutError",
    "AgentEvaluationError",
    "classify_exception",
    "is_soft_failure",
    "describe_exception",
    "wrap_exception",

    # Logging
    "JsonFormatter",
    "setup_logging",
]
