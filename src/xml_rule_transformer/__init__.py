"""Rule-driven streaming XML transformer.

Rewrites a well-formed XML document into an output string in a single
forward pass, asking a user-supplied callback what to do at every element
boundary: rename or drop tags, edit attributes, insert literal content, or
post-process a whole subtree through a text transform.

Progressive API Disclosure:
- Level 1: Simple functions - transform(), transform_string(), transform_file()
- Level 2: Configured transformer - XMLRuleTransformer class
- Level 3: Tree input - transform_element() for lxml and ElementTree elements
"""

__version__ = "0.1.0"
__author__ = "XML Rule Transformer Team"

from .api import (
    XMLRuleTransformer,
    transform,
    transform_element,
    transform_file,
    transform_string,
    transform_with_result,
)
from .engine import SUPPRESS, NodeKind, RuleSet
from .shared import (
    CallbackConsistencyError,
    CallbackError,
    ConfigValidationError,
    DepthLimitError,
    EngineStateError,
    RuleValidationError,
    TransformationMetrics,
    TransformationResult,
    TransformerConfig,
    TransformerError,
    UnexpectedRuleKeyError,
    XMLInputError,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple transformation functions
    "transform",
    "transform_string",
    "transform_file",
    "transform_with_result",

    # Level 2: Configured transformer
    "XMLRuleTransformer",

    # Level 3: Tree input
    "transform_element",

    # Callback vocabulary
    "SUPPRESS",
    "NodeKind",
    "RuleSet",

    # Configuration and results
    "TransformerConfig",
    "TransformationResult",
    "TransformationMetrics",

    # Errors
    "TransformerError",
    "XMLInputError",
    "CallbackError",
    "RuleValidationError",
    "UnexpectedRuleKeyError",
    "CallbackConsistencyError",
    "DepthLimitError",
    "EngineStateError",
    "ConfigValidationError",
]
