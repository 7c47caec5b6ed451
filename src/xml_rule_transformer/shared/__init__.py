"""Shared utilities for XML rule transformation.

This module provides the configuration object, error hierarchy, result types,
markup helpers and logging used across the event reader, engine and API.
"""

from .config import TransformerConfig
from .errors import (
    CallbackConsistencyError,
    CallbackError,
    ConfigValidationError,
    DepthLimitError,
    EngineStateError,
    RuleValidationError,
    TransformerError,
    UnexpectedRuleKeyError,
    XMLInputError,
)
from .logging import CorrelationLogger, configure_logging, get_logger
from .result import TransformationMetrics, TransformationResult

__all__ = [
    "TransformerConfig",
    "CallbackConsistencyError",
    "CallbackError",
    "ConfigValidationError",
    "DepthLimitError",
    "EngineStateError",
    "RuleValidationError",
    "TransformerError",
    "UnexpectedRuleKeyError",
    "XMLInputError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "TransformationMetrics",
    "TransformationResult",
]
