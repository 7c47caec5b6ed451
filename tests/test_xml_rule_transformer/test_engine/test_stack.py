"""Tests for element frames, transform frames and the output assembler."""

import pytest

from xml_rule_transformer.engine import (
    ContextStack,
    ElementFrame,
    OutputAssembler,
    TransformFrame,
    TransformMode,
)
from xml_rule_transformer.engine.stack import call_transform
from xml_rule_transformer.shared import CallbackError, EngineStateError


class TestCallTransform:
    """Test invocation of user transforms."""

    def test_string_result(self):
        assert call_transform(str.upper, "ab") == "AB"

    def test_none_result(self):
        assert call_transform(lambda s: None, "ab") == ""

    def test_non_string_result(self):
        with pytest.raises(CallbackError, match="returned list"):
            call_transform(list, "ab")


class TestTransformFrame:
    """Test transform frame resolution."""

    def test_outer(self):
        frame = TransformFrame(lambda s: "[" + s + "]", TransformMode.OUTER)
        frame.append("<a>")
        frame.append("x")
        assert frame.resolve("E", "</a>", "A") == "[<a>xE</a>A]"

    def test_inner(self):
        frame = TransformFrame(str.upper, TransformMode.INNER, prefix_length=3)
        frame.append("<a>")
        frame.append("x")
        assert frame.resolve("e", "</a>", "after") == "<a>XE</a>after"

    def test_content(self):
        frame = TransformFrame(str.upper, TransformMode.OUTER)
        frame.append("a")
        frame.append("b")
        assert frame.content == "ab"


class TestContextStack:
    """Test the context stack."""

    def test_push_pop(self):
        stack = ContextStack()
        frame = ElementFrame("a", {"x": "1"})
        stack.push(frame)
        assert stack.depth == 1
        assert len(stack) == 1
        assert stack.pop("a") is frame
        assert stack.depth == 0

    def test_pop_empty(self):
        with pytest.raises(EngineStateError, match="without an open element"):
            ContextStack().pop("a")

    def test_pop_mismatch(self):
        stack = ContextStack()
        stack.push(ElementFrame("a", {}))
        with pytest.raises(EngineStateError, match="does not match open element <a>"):
            stack.pop("b")


class TestOutputAssembler:
    """Test routing of output fragments."""

    def test_direct_output(self):
        assembler = OutputAssembler()
        assembler.emit("<a>")
        assembler.emit("")
        assembler.emit("</a>")
        assert assembler.result() == "<a></a>"
        assert assembler.length == 7

    def test_routes_to_innermost_transform(self):
        assembler = OutputAssembler()
        outer = TransformFrame(str.upper, TransformMode.OUTER)
        inner = TransformFrame(str.upper, TransformMode.OUTER)
        assembler.emit("1")
        assembler.push_transform(outer)
        assembler.emit("2")
        assembler.push_transform(inner)
        assembler.emit("3")
        assert assembler.pop_transform(inner) is inner
        assembler.emit("4")
        assembler.pop_transform(outer)
        assert outer.content == "24"
        assert inner.content == "3"
        assert assembler.result() == "1"

    def test_pop_wrong_frame(self):
        assembler = OutputAssembler()
        assembler.push_transform(TransformFrame(str.upper, TransformMode.OUTER))
        with pytest.raises(EngineStateError, match="out of step"):
            assembler.pop_transform(TransformFrame(str.upper, TransformMode.OUTER))

    def test_result_with_pending_transform(self):
        assembler = OutputAssembler()
        assembler.push_transform(TransformFrame(str.upper, TransformMode.INNER))
        with pytest.raises(EngineStateError, match="still pending"):
            assembler.result()
