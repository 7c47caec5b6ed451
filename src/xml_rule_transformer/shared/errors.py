"""Exception hierarchy for rule-driven XML transformation.

Every error raised by the package derives from ``TransformerError`` so callers
can catch the whole family at once. Errors raised inside user-supplied
transform functions are never wrapped and reach the caller unchanged.
"""

from typing import Optional


class TransformerError(Exception):
    """Base exception for all transformation errors."""


class XMLInputError(TransformerError):
    """Raised when the input document is empty, too large or not well-formed."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class CallbackError(TransformerError):
    """Raised when the rule callback breaks its contract."""


class RuleValidationError(CallbackError):
    """Raised when a rule set uses a key that is invalid for the element."""

    def __init__(self, message: str, key: str, tag: str) -> None:
        super().__init__(message)
        self.key = key
        self.tag = tag


class UnexpectedRuleKeyError(RuleValidationError):
    """Raised when a rule set contains a key that is not recognized at all."""


class CallbackConsistencyError(CallbackError):
    """Raised when the callback suppresses a close it did not suppress on open."""

    def __init__(self, message: str, tag: str) -> None:
        super().__init__(message)
        self.tag = tag


class DepthLimitError(TransformerError):
    """Raised when element nesting exceeds the configured maximum depth."""

    def __init__(self, message: str, depth: int, limit: int) -> None:
        super().__init__(message)
        self.depth = depth
        self.limit = limit


class EngineStateError(TransformerError):
    """Raised when the open/close pairing of the engine stacks is broken."""


class ConfigValidationError(TransformerError, ValueError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.field_name = field_name
