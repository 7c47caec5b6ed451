"""Tests for the package root: metadata, exports and the callback vocabulary."""

import pickle

import pytest

import xml_rule_transformer
from xml_rule_transformer import (
    SUPPRESS,
    NodeKind,
    RuleSet,
    TransformerError,
    transform,
)


def test_metadata() -> None:
    assert xml_rule_transformer.__version__ == "0.1.0"
    assert xml_rule_transformer.__author__ == "XML Rule Transformer Team"


def test_public_api_exports() -> None:
    """Every name in __all__ is importable from the package root."""
    for name in xml_rule_transformer.__all__:
        assert hasattr(xml_rule_transformer, name), name


def test_progressive_api_levels_are_exported() -> None:
    exported = set(xml_rule_transformer.__all__)
    assert {"transform", "transform_string", "transform_file", "transform_with_result"} <= exported
    assert "XMLRuleTransformer" in exported
    assert "transform_element" in exported


def test_suppress_marker_is_a_singleton() -> None:
    assert repr(SUPPRESS) == "SUPPRESS"
    assert pickle.loads(pickle.dumps(SUPPRESS)) is SUPPRESS


def test_node_kinds() -> None:
    assert [(kind.name, kind.value) for kind in NodeKind] == [("CLOSE", 0), ("OPEN", 1), ("EMPTY", 2)]


@pytest.mark.parametrize("name", [
    name for name in xml_rule_transformer.__all__ if name.endswith("Error")
])
def test_errors_share_one_base(name) -> None:
    assert issubclass(getattr(xml_rule_transformer, name), TransformerError)


def test_root_level_transform_end_to_end() -> None:
    def callback(tag, attributes, kind):
        if tag == "drop":
            return SUPPRESS
        if tag == "b":
            return RuleSet(tag="strong")
        return None

    assert transform("<r><drop>x</drop><b>y</b></r>", callback) == "<r><strong>y</strong></r>"
