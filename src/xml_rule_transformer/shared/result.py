"""Result objects and metrics for XML rule transformation."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class TransformationMetrics:
    """Counters collected while a document is transformed."""

    elements_processed: int = 0
    elements_suppressed: int = 0
    empty_elements: int = 0
    text_events: int = 0
    cdata_sections: int = 0
    transforms_applied: int = 0
    max_depth_seen: int = 0
    input_length: int = 0
    output_length: int = 0
    processing_time_ms: float = 0.0

    @property
    def elements_per_second(self) -> float:
        """Calculate elements processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements_processed": self.elements_processed,
            "elements_suppressed": self.elements_suppressed,
            "empty_elements": self.empty_elements,
            "text_events": self.text_events,
            "cdata_sections": self.cdata_sections,
            "transforms_applied": self.transforms_applied,
            "max_depth_seen": self.max_depth_seen,
            "input_length": self.input_length,
            "output_length": self.output_length,
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass
class TransformationResult:
    """Output of a completed transformation plus its metrics."""

    output: str
    metrics: TransformationMetrics = field(default_factory=TransformationMetrics)
    correlation_id: Optional[str] = None

    def __str__(self) -> str:
        return self.output
