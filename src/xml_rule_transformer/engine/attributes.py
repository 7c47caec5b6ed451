"""Attribute rule application and opening-tag rendering."""

from typing import List, Mapping, Tuple

from xml_rule_transformer.shared.markup import render_start_tag

from .rules import AttributeRuleValue


def apply_attribute_rules(
    attributes: Mapping[str, str],
    rules: Mapping[str, AttributeRuleValue],
    marker: str = "@",
) -> List[Tuple[str, str]]:
    """Resolve attribute rules against an element's source attributes.

    Source attributes keep their order. A rule for a present attribute drops
    it (``False``), renames it (marker-prefixed value, original value kept)
    or replaces its value (any other string). Rules for absent attributes only
    add an attribute when they carry a literal value; renaming or dropping
    something that is not there does nothing.

    Returns:
        ``(name, value)`` pairs with decoded values, ready for escaping
    """
    emitted: List[Tuple[str, str]] = []

    for name, value in attributes.items():
        if name not in rules:
            emitted.append((name, value))
            continue
        rule = rules[name]
        if rule is False:
            continue
        if rule is True:
            emitted.append((name, value))
        elif rule.startswith(marker):
            emitted.append((rule[len(marker):], value))
        else:
            emitted.append((name, rule))

    for name, rule in rules.items():
        if name in attributes or isinstance(rule, bool):
            continue
        if rule.startswith(marker):
            continue
        emitted.append((name, rule))

    return emitted


def build_opening_tag(
    tag_name: str,
    attributes: Mapping[str, str],
    rules: Mapping[str, AttributeRuleValue],
    empty: bool,
    style: str = "spaced",
    marker: str = "@",
) -> str:
    """Render the opening tag for ``tag_name``, or ``""`` if it is elided."""
    if not tag_name:
        return ""
    return render_start_tag(
        tag_name,
        apply_attribute_rules(attributes, rules, marker),
        self_closing=empty,
        style=style,
    )
