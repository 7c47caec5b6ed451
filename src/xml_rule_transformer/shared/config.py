"""Configuration for rule-driven XML transformation.

``TransformerConfig`` is an immutable dataclass validated on construction.
Preset classmethods cover the common variations and JSON helpers allow
configurations to be stored next to rule files.
"""

import json
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from .errors import ConfigValidationError
from .logging import VALID_LEVELS
from .markup import SELF_CLOSING_SUFFIXES


@dataclass(frozen=True)
class TransformerConfig:
    """Settings for a single transformation run.

    Thread-safe due to the frozen dataclass implementation; every engine
    instance reads it but never mutates it.
    """

    # Output settings
    keep_cdata: bool = True
    attribute_marker: str = "@"
    self_closing_style: str = "spaced"  # spaced: <e />, compact: <e/>

    # Callback contract settings
    check_callback_consistency: bool = False

    # Input limits
    max_depth: Optional[int] = None
    max_input_size_bytes: Optional[int] = None
    allow_entity_declarations: bool = True

    # Diagnostics
    correlation_id: Optional[str] = None
    logging_level: str = "INFO"
    enable_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate transformer configuration."""
        if not isinstance(self.attribute_marker, str) or len(self.attribute_marker) != 1:
            raise ConfigValidationError(
                "attribute_marker must be a single character", "attribute_marker"
            )
        if self.self_closing_style not in SELF_CLOSING_SUFFIXES:
            raise ConfigValidationError(
                f"self_closing_style must be one of {sorted(SELF_CLOSING_SUFFIXES)}",
                "self_closing_style",
            )
        if self.max_depth is not None and self.max_depth <= 0:
            raise ConfigValidationError("max_depth must be > 0 or None", "max_depth")
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ConfigValidationError(
                "max_input_size_bytes must be > 0 or None", "max_input_size_bytes"
            )
        if self.logging_level not in VALID_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {list(VALID_LEVELS)}", "logging_level"
            )

    @classmethod
    def default(cls) -> "TransformerConfig":
        """Create the default configuration (CDATA kept, spaced empty tags)."""
        return cls()

    @classmethod
    def strict(cls) -> "TransformerConfig":
        """Create configuration that enforces callback consistency and rejects DTD entities."""
        return cls(check_callback_consistency=True, allow_entity_declarations=False)

    @classmethod
    def plain_text_cdata(cls) -> "TransformerConfig":
        """Create configuration that flattens CDATA sections to escaped text."""
        return cls(keep_cdata=False)

    @classmethod
    def compact(cls) -> "TransformerConfig":
        """Create configuration that renders empty elements as ``<e/>``."""
        return cls(self_closing_style="compact")

    def override(self, **kwargs: Any) -> "TransformerConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = TransformerConfig().override(keep_cdata=False)
            >>> config.keep_cdata
            False
        """
        unknown = set(kwargs) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {sorted(unknown)}"
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransformerConfig":
        """Create configuration from dictionary.

        Raises:
            ConfigValidationError: If the dictionary contains unknown keys or
                invalid values
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {sorted(unknown)}"
            )
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "TransformerConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)
