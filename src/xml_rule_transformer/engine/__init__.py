"""Transformation engine for rule-driven XML rewriting.

Key Components:
    TransformationEngine: Single-pass engine consulting the rule callback
    RuleSet: Destructured, validated rules for one element boundary
    NodeKind: Element boundary kinds passed to the callback
    SUPPRESS: Sentinel that drops an element and its subtree
    OutputAssembler: Routes fragments to the final output or a pending transform
"""

from .attributes import apply_attribute_rules, build_opening_tag
from .rules import (
    NO_RULES,
    RECOGNIZED_KEYS,
    RULE_INSERT_AFTER,
    RULE_INSERT_AT_END,
    RULE_INSERT_AT_START,
    RULE_INSERT_BEFORE,
    RULE_TAG,
    RULE_TRANSFORM_INNER,
    RULE_TRANSFORM_OUTER,
    SUPPRESS,
    NodeKind,
    RuleSet,
    interpret_callback_result,
)
from .stack import (
    ContextStack,
    ElementFrame,
    OutputAssembler,
    TransformFrame,
    TransformMode,
)
from .transformer import RuleCallback, TransformationEngine

__all__ = [
    "apply_attribute_rules",
    "build_opening_tag",
    "NO_RULES",
    "RECOGNIZED_KEYS",
    "RULE_INSERT_AFTER",
    "RULE_INSERT_AT_END",
    "RULE_INSERT_AT_START",
    "RULE_INSERT_BEFORE",
    "RULE_TAG",
    "RULE_TRANSFORM_INNER",
    "RULE_TRANSFORM_OUTER",
    "SUPPRESS",
    "NodeKind",
    "RuleSet",
    "interpret_callback_result",
    "ContextStack",
    "ElementFrame",
    "OutputAssembler",
    "TransformFrame",
    "TransformMode",
    "RuleCallback",
    "TransformationEngine",
]
