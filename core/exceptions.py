"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Error types shared by scoring, fusion and consensus.

The split that matters is hard vs soft: a hard failure is the
caller's fault and stops the call, a soft failure only shrinks or
neutralises the result.

============================================================
EXCEPTION HIERARCHY
============================================================
AggregationException (base)
├── ConfigurationError
│   ├── InvalidConfigError
│   ├── MissingAdapterError
│   └── MissingAgentAccuracyError
├── DataError
│   ├── DataUnavailableError
│   └── DataValidationError
│       └── SeriesOrderingError
└── CoordinationError
    ├── AgentTimeoutError
    └── AgentEvaluationError

Configuration errors are surfaced to the caller immediately.
Data and coordination errors degrade to partial or neutral results.

============================================================
"""

import asyncio
from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, result is degraded."""

    HIGH = "high"
    """Serious issue, the operation cannot proceed."""

    CRITICAL = "critical"
    """Critical issue, requires immediate action."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Error can be recovered from automatically."""

    TRANSIENT = "transient"
    """Temporary error, a later cycle may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Permanent error, requires a configuration change."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class AggregationException(Exception):
    """
    Root of every error raised by scoring, fusion and consensus.

    Carries a severity for log routing, a context dict with the asset,
    source or agent involved, and the UTC time it was raised. A wrapped
    upstream exception is kept in cause.
    """

    default_severity: Severity = Severity.MEDIUM
    default_recoverable: bool = True
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        base = (
            f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
            f" | recoverable={self.recoverable}"
        )
        return f"{base} | {ctx_str}" if ctx_str else base


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(AggregationException):
    """Caller-side mistake. Surfaced immediately, never degraded."""

    default_severity = Severity.HIGH
    default_recoverable = False
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(message, context=context, **kwargs)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """A config field or weight table holds an unusable value."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid value for {key}: {reason}",
            config_key=key,
            context={"reason": reason, "value": str(value)[:100]},
        )
        self.value = value


class MissingAdapterError(ConfigurationError):
    """An upstream data adapter required by a source is not configured."""

    def __init__(self, source: str, adapter: str = "market_data"):
        super().__init__(
            message=f"{adapter} adapter is required for {source} sentiment analysis",
            config_key=f"adapters.{adapter}",
            context={"source": source, "adapter": adapter},
        )
        self.source = source
        self.adapter = adapter


class MissingAgentAccuracyError(ConfigurationError):
    """Bayesian aggregation received a signal without agent accuracy."""

    def __init__(self, agent_id: str, asset: str):
        super().__init__(
            message=(
                f"Signal from agent '{agent_id}' for {asset} has no agent_accuracy; "
                f"bayesian aggregation requires calibrated accuracy for every signal"
            ),
            config_key="agent_accuracy",
            context={"agent_id": agent_id, "asset": asset},
        )
        self.agent_id = agent_id
        self.asset = asset


# ============================================================
# DATA ERRORS
# ============================================================

class DataError(AggregationException):
    """Base class for data-related errors."""

    default_severity = Severity.MEDIUM
    default_recoverable = True
    default_classification = ErrorClassification.TRANSIENT


class DataUnavailableError(DataError):
    """An asset/source lacks sufficient time-series data."""

    def __init__(
        self,
        message: str,
        asset: Optional[str] = None,
        source: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if asset:
            context["asset"] = asset
        if source:
            context["source"] = source

        super().__init__(message, context=context, **kwargs)
        self.asset = asset
        self.source = source


class DataValidationError(DataError):
    """Upstream records are malformed. The same input will fail again."""

    default_recoverable = False
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field

        super().__init__(message, context=context, **kwargs)
        self.field = field


class SeriesOrderingError(DataValidationError):
    """Time series records are not ordered as declared."""

    def __init__(self, declared_order: str, index: int):
        super().__init__(
            message=(
                f"Time series declared {declared_order} but record {index} "
                f"breaks monotonic timestamp order"
            ),
            field="timestamp",
            context={"declared_order": declared_order, "index": index},
        )
        self.declared_order = declared_order
        self.index = index


# ============================================================
# COORDINATION ERRORS
# ============================================================

class CoordinationError(AggregationException):
    """Base class for agent coordination errors."""

    default_severity = Severity.MEDIUM
    default_recoverable = True
    default_classification = ErrorClassification.TRANSIENT


class AgentTimeoutError(CoordinationError):
    """Agent exceeded its latency budget."""

    def __init__(self, agent_id: str, timeout_seconds: float, phase: str = "process"):
        super().__init__(
            message=f"Agent '{agent_id}' exceeded {timeout_seconds}s budget during {phase}",
            context={
                "agent_id": agent_id,
                "timeout_seconds": timeout_seconds,
                "phase": phase,
            },
        )
        self.agent_id = agent_id
        self.timeout_seconds = timeout_seconds
        self.phase = phase


class AgentEvaluationError(CoordinationError):
    """Agent raised while producing signals or an opinion."""

    def __init__(self, agent_id: str, cause: Exception, phase: str = "process"):
        super().__init__(
            message=f"Agent '{agent_id}' failed during {phase}: {cause}",
            context={"agent_id": agent_id, "phase": phase},
            cause=cause,
        )
        self.agent_id = agent_id
        self.phase = phase


# ============================================================
# EXCEPTION UTILITIES
# ============================================================

def classify_exception(exc: BaseException) -> ErrorClassification:
    """Classify an exception for error handling."""
    if isinstance(exc, AggregationException):
        return exc.classification

    if isinstance(exc, (asyncio.TimeoutError, OSError)):
        return ErrorClassification.TRANSIENT

    if not isinstance(exc, Exception) or isinstance(exc, MemoryError):
        return ErrorClassification.NON_RECOVERABLE

    return ErrorClassification.RECOVERABLE


def is_soft_failure(exc: BaseException) -> bool:
    """
    True when the failure should degrade the result instead of aborting.

    Independent of classification: a malformed series will fail again
    next cycle, but it still only removes one source from the result.
    """
    if isinstance(exc, AggregationException):
        return isinstance(exc, (DataError, CoordinationError))
    return isinstance(exc, Exception)


def describe_exception(exc: BaseException) -> str:
    """One-line description for log messages."""
    if isinstance(exc, AggregationException):
        return exc.to_log_format()
    return f"{type(exc).__name__}: {exc}"


def wrap_exception(
    exc: Exception,
    wrapper_class: type = AggregationException,
    message: Optional[str] = None,
    **kwargs,
) -> AggregationException:
    """Wrap a standard exception in an AggregationException."""
    msg = message or f"{type(exc).__name__}: {exc}"
    return wrapper_class(message=msg, cause=exc, **kwargs)


__all__ = [
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
]
