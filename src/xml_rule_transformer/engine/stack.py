"""Per-element bookkeeping and output routing for the transformation engine.

One ``ElementFrame`` is pushed for every non-empty element that is opened
outside an ignorable region and popped at its matching close. A frame owns
the attributes captured at open time and, if the callback asked for one, the
pending transform of that element. The ``OutputAssembler`` routes every
fragment to the innermost pending transform or, if there is none, to the
final output.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

from xml_rule_transformer.shared.errors import CallbackError, EngineStateError

from .rules import TransformFunction


def call_transform(function: Callable[[str], Any], content: str) -> str:
    """Invoke a user transform; ``None`` counts as the empty string.

    Raises:
        CallbackError: If the transform returns something other than a string
    """
    result = function(content)
    if result is None:
        return ""
    if not isinstance(result, str):
        raise CallbackError(
            f"Transform function returned {type(result).__name__}; expected str"
        )
    return result


class TransformMode(Enum):
    """Which part of an element a pending transform receives."""

    OUTER = auto()  # Whole element including its own tags and insertions
    INNER = auto()  # Content between the opening and closing tag only


@dataclass
class TransformFrame:
    """Accumulates the serialized subtree of an element awaiting a transform.

    For inner transforms ``prefix_length`` is the length of the opening tag at
    the start of the buffer, which is split off again at close time.
    """

    function: TransformFunction
    mode: TransformMode
    parts: List[str] = field(default_factory=list)
    prefix_length: int = 0

    def append(self, fragment: str) -> None:
        self.parts.append(fragment)

    @property
    def content(self) -> str:
        return "".join(self.parts)

    def resolve(self, insert_at_end: str, closing_tag: str, insert_after: str) -> str:
        """Apply the transform and return the finished fragment."""
        accumulated = self.content
        if self.mode is TransformMode.OUTER:
            return call_transform(
                self.function, accumulated + insert_at_end + closing_tag + insert_after
            )
        opening_tag = accumulated[:self.prefix_length]
        inner = accumulated[self.prefix_length:]
        return (opening_tag + call_transform(self.function, inner + insert_at_end)
                + closing_tag + insert_after)


@dataclass
class ElementFrame:
    """Context of one open, non-empty element."""

    name: str
    attributes: Dict[str, str]
    transform: Optional[TransformFrame] = None


class ContextStack:
    """Stack of open element frames; depth equals current nesting depth."""

    def __init__(self) -> None:
        self._frames: List[ElementFrame] = []

    def push(self, frame: ElementFrame) -> None:
        self._frames.append(frame)

    def pop(self, name: str) -> ElementFrame:
        """Pop the frame opened for ``name``.

        Raises:
            EngineStateError: If no element is open or the innermost open
                element has a different name
        """
        if not self._frames:
            raise EngineStateError(f"Close event for <{name}> without an open element")
        frame = self._frames.pop()
        if frame.name != name:
            raise EngineStateError(
                f"Close event for <{name}> does not match open element <{frame.name}>"
            )
        return frame

    @property
    def depth(self) -> int:
        return len(self._frames)

    def __len__(self) -> int:
        return len(self._frames)


class OutputAssembler:
    """Single sink for output fragments.

    Fragments go to the innermost pending transform, so nested transforms
    each see only their own subtree; a resolved transform's result is emitted
    again and lands in the next-outer frame or the final output.
    """

    def __init__(self) -> None:
        self._output: List[str] = []
        self._transforms: List[TransformFrame] = []
        self.length = 0

    def emit(self, fragment: str) -> None:
        if not fragment:
            return
        if self._transforms:
            self._transforms[-1].append(fragment)
        else:
            self._output.append(fragment)
            self.length += len(fragment)

    def push_transform(self, frame: TransformFrame) -> None:
        self._transforms.append(frame)

    def pop_transform(self, frame: TransformFrame) -> TransformFrame:
        """Pop ``frame``, which must be the innermost pending transform.

        Raises:
            EngineStateError: If ``frame`` is not the innermost transform
        """
        if not self._transforms or self._transforms[-1] is not frame:
            raise EngineStateError("Transform stack out of step with element stack")
        return self._transforms.pop()

    def result(self) -> str:
        """Return the assembled output.

        Raises:
            EngineStateError: If a transform is still pending
        """
        if self._transforms:
            raise EngineStateError(
                f"{len(self._transforms)} transform(s) still pending at end of document"
            )
        return "".join(self._output)
