"""Rule sets returned by the user callback and their validation.

A callback answers every element boundary with one of three things: the
``SUPPRESS`` sentinel (drop the element and its whole subtree), ``None`` or an
empty mapping (leave the element alone), or a mapping of rule keys. Mappings
are destructured once into an immutable ``RuleSet`` so the engine never has to
look at raw keys again.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from xml_rule_transformer.shared.errors import (
    CallbackError,
    RuleValidationError,
    UnexpectedRuleKeyError,
)

TransformFunction = Callable[[str], str]
AttributeRuleValue = Union[str, bool]

RULE_TAG = "tag"
RULE_INSERT_BEFORE = "insert-before"
RULE_INSERT_AFTER = "insert-after"
RULE_INSERT_AT_START = "insert-at-start"
RULE_INSERT_AT_END = "insert-at-end"
RULE_TRANSFORM_OUTER = "transform-outer"
RULE_TRANSFORM_INNER = "transform-inner"

INSERTION_KEYS = (
    RULE_INSERT_BEFORE,
    RULE_INSERT_AFTER,
    RULE_INSERT_AT_START,
    RULE_INSERT_AT_END,
)
TRANSFORM_KEYS = (RULE_TRANSFORM_OUTER, RULE_TRANSFORM_INNER)
RECOGNIZED_KEYS = frozenset((RULE_TAG,) + INSERTION_KEYS + TRANSFORM_KEYS)


class NodeKind(Enum):
    """Kind of element boundary passed to the callback."""

    CLOSE = 0   # Closing tag of a non-empty element
    OPEN = 1    # Opening tag of a non-empty element
    EMPTY = 2   # Self-closing element, reported once


class _Suppress:
    """Sentinel type for "drop this element and everything inside it"."""

    _instance: Optional["_Suppress"] = None

    def __new__(cls) -> "_Suppress":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SUPPRESS"

    def __reduce__(self) -> str:
        return "SUPPRESS"


SUPPRESS = _Suppress()


def _insertion(value: Any) -> str:
    if value is None or value is False:
        return ""
    return str(value)


@dataclass(frozen=True)
class RuleSet:
    """Destructured rules for one element boundary.

    ``tag`` is ``None`` when the element keeps its name; any other falsy
    value elides the tag while keeping the element's content.
    ``attribute_rules`` maps attribute names (marker stripped) to ``False``
    (drop), a marker-prefixed name (rename) or a literal value, in the order
    the callback supplied them.
    """

    tag: Any = None
    insert_before: str = ""
    insert_after: str = ""
    insert_at_start: str = ""
    insert_at_end: str = ""
    transform_outer: Optional[TransformFunction] = None
    transform_inner: Optional[TransformFunction] = None
    attribute_rules: Dict[str, AttributeRuleValue] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        rules: Mapping[str, Any],
        tag_name: str,
        marker: str = "@",
    ) -> "RuleSet":
        """Destructure a rule mapping returned by the callback.

        Raises:
            UnexpectedRuleKeyError: If a key is neither recognized nor an
                attribute rule
            RuleValidationError: If a transform rule is not callable
        """
        attribute_rules: Dict[str, AttributeRuleValue] = {}
        for key, value in rules.items():
            if not isinstance(key, str):
                raise UnexpectedRuleKeyError(
                    f"Unexpected key {key!r} in rule set returned by callback "
                    f"for <{tag_name}>.",
                    str(key),
                    tag_name,
                )
            if key in RECOGNIZED_KEYS:
                continue
            if key.startswith(marker) and len(key) > len(marker):
                if value is None:
                    continue
                if not isinstance(value, bool):
                    value = str(value)
                    if value == marker:
                        raise RuleValidationError(
                            f'Rename rule "{key}" for <{tag_name}> has no '
                            "target attribute name.",
                            key,
                            tag_name,
                        )
                attribute_rules[key[len(marker):]] = value
                continue
            raise UnexpectedRuleKeyError(
                f'Unexpected key "{key}" in rule set returned by callback '
                f"for <{tag_name}>.",
                key,
                tag_name,
            )

        transforms = {}
        for key in TRANSFORM_KEYS:
            function = rules.get(key)
            if function is not None and not callable(function):
                raise RuleValidationError(
                    f'"{key}" must be a callable taking and returning a string '
                    f"(here: <{tag_name}>), got {type(function).__name__}.",
                    key,
                    tag_name,
                )
            transforms[key] = function

        return cls(
            tag=rules.get(RULE_TAG),
            insert_before=_insertion(rules.get(RULE_INSERT_BEFORE)),
            insert_after=_insertion(rules.get(RULE_INSERT_AFTER)),
            insert_at_start=_insertion(rules.get(RULE_INSERT_AT_START)),
            insert_at_end=_insertion(rules.get(RULE_INSERT_AT_END)),
            transform_outer=transforms[RULE_TRANSFORM_OUTER],
            transform_inner=transforms[RULE_TRANSFORM_INNER],
            attribute_rules=attribute_rules,
        )

    @classmethod
    def for_close(cls, rules: Mapping[str, Any]) -> "RuleSet":
        """Read the rules that act on a closing tag.

        Only ``tag``, ``insert-at-end`` and ``insert-after`` are read. Other
        keys act when the element opens, so they are neither applied nor
        validated here.
        """
        return cls(
            tag=rules.get(RULE_TAG),
            insert_after=_insertion(rules.get(RULE_INSERT_AFTER)),
            insert_at_end=_insertion(rules.get(RULE_INSERT_AT_END)),
        )

    def resolve_tag(self, name: str) -> str:
        """Return the output tag name, or ``""`` if the tag is elided."""
        if self.tag is None:
            return name
        if not self.tag:
            return ""
        return str(self.tag)

    @property
    def has_transform(self) -> bool:
        return self.transform_outer is not None or self.transform_inner is not None

    def validate_for_empty(self, tag_name: str) -> None:
        """Reject rules that need content or a close event on an empty element.

        Raises:
            RuleValidationError: For ``insert-at-start``, ``insert-at-end``
                or ``transform-outer`` on a self-closing element
        """
        if self.insert_at_end:
            raise RuleValidationError(
                f'"{RULE_INSERT_AT_END}" does not make sense for empty tags '
                f'(here: <{tag_name}/>). Use "{RULE_INSERT_AFTER}".',
                RULE_INSERT_AT_END,
                tag_name,
            )
        if self.insert_at_start:
            raise RuleValidationError(
                f'"{RULE_INSERT_AT_START}" does not make sense for empty tags '
                f'(here: <{tag_name}/>). Use "{RULE_INSERT_BEFORE}".',
                RULE_INSERT_AT_START,
                tag_name,
            )
        if self.transform_outer is not None:
            raise RuleValidationError(
                f'"{RULE_TRANSFORM_OUTER}" does not work with empty tags '
                f'(here: <{tag_name}/>). Use "{RULE_INSERT_BEFORE}" and '
                f'"{RULE_INSERT_AFTER}" to wrap the element or '
                f'"{RULE_TRANSFORM_INNER}" to replace it.',
                RULE_TRANSFORM_OUTER,
                tag_name,
            )


NO_RULES = RuleSet()


def interpret_callback_result(
    result: Any,
    tag_name: str,
    marker: str = "@",
    closing: bool = False,
) -> Union[RuleSet, _Suppress]:
    """Turn a raw callback return value into ``SUPPRESS`` or a ``RuleSet``.

    ``False`` is accepted as a synonym of ``SUPPRESS``. With ``closing`` a
    mapping is read leniently through ``RuleSet.for_close``.

    Raises:
        CallbackError: If the value is not a mapping, ``None`` or a suppress
            marker
    """
    if result is SUPPRESS or result is False:
        return SUPPRESS
    if result is None:
        return NO_RULES
    if isinstance(result, RuleSet):
        return result
    if isinstance(result, Mapping):
        if not result:
            return NO_RULES
        if closing:
            return RuleSet.for_close(result)
        return RuleSet.from_mapping(result, tag_name, marker)
    raise CallbackError(
        f"Callback returned {type(result).__name__} for <{tag_name}>; expected a "
        "rule mapping, None or SUPPRESS."
    )
