"""Public API for rule-driven XML transformation."""

from .adapters import (
    ElementTreeAdapter,
    InputAdapter,
    LxmlAdapter,
    get_adapter,
    list_adapters,
    transform_element,
)
from .transform import (
    XMLRuleTransformer,
    transform,
    transform_file,
    transform_string,
    transform_with_result,
)

__all__ = [
    "ElementTreeAdapter",
    "InputAdapter",
    "LxmlAdapter",
    "get_adapter",
    "list_adapters",
    "transform_element",
    "XMLRuleTransformer",
    "transform",
    "transform_file",
    "transform_string",
    "transform_with_result",
]
