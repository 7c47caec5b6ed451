"""Streaming, single-pass transformation engine.

The engine walks the event list of one document and consults the rule
callback at every element boundary. Output fragments are assembled in
document order through the ``OutputAssembler``; elements that requested a
transform collect their subtree until their close event and are replaced by
the transform's result.

An engine instance owns all of its state and is meant for one document at a
time; the API layer creates a fresh engine per call.
"""

import time
from typing import Any, Callable, Dict, Optional, Union

from xml_rule_transformer.events import EventType, XMLEvent, XMLEventReader
from xml_rule_transformer.shared.config import TransformerConfig
from xml_rule_transformer.shared.errors import (
    CallbackConsistencyError,
    CallbackError,
    DepthLimitError,
    EngineStateError,
)
from xml_rule_transformer.shared.logging import get_logger
from xml_rule_transformer.shared.markup import escape_text, render_end_tag, wrap_cdata
from xml_rule_transformer.shared.result import TransformationMetrics

from .attributes import build_opening_tag
from .rules import (
    SUPPRESS,
    NodeKind,
    RuleSet,
    _Suppress,
    interpret_callback_result,
)
from .stack import (
    ContextStack,
    ElementFrame,
    OutputAssembler,
    TransformFrame,
    TransformMode,
    call_transform,
)

RuleCallback = Callable[[str, Dict[str, str], NodeKind], Any]


class TransformationEngine:
    """Rule-driven XML transformation engine.

    Example:
        >>> engine = TransformationEngine(lambda name, attributes, kind: None)
        >>> engine.run('<root><a x="1">text</a></root>')
        '<root><a x="1">text</a></root>'
    """

    def __init__(
        self,
        callback: RuleCallback,
        config: Optional[TransformerConfig] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            callback: Rule callback invoked with (name, attributes, kind)
            config: Transformation settings, defaults to ``TransformerConfig()``

        Raises:
            CallbackError: If ``callback`` is not callable
        """
        if not callable(callback):
            raise CallbackError(
                f"Callback must be callable, got {type(callback).__name__}"
            )
        self.callback = callback
        self.config = config or TransformerConfig()
        self.reader = XMLEventReader(
            allow_entity_declarations=self.config.allow_entity_declarations,
            max_input_size_bytes=self.config.max_input_size_bytes,
            correlation_id=self.config.correlation_id,
        )
        self.logger = get_logger(__name__, self.config.correlation_id, "engine")
        self._reset()

    def _reset(self) -> None:
        self._context = ContextStack()
        self._assembler = OutputAssembler()
        self._ignorable_depth = 0
        self._suppressed: Optional[ElementFrame] = None
        self.metrics = TransformationMetrics()

    def run(self, xml: Union[str, bytes]) -> str:
        """Transform ``xml`` and return the assembled output.

        Raises:
            XMLInputError: If the document is empty or not well-formed
            CallbackError: If the callback or a rule set breaks its contract
            EngineStateError: If open and close events do not pair up
        """
        start_time = time.time()
        events = self.reader.read(xml)
        self._reset()
        self.metrics.input_length = len(xml)

        for event in events:
            self._dispatch(event)

        if self._ignorable_depth or self._context.depth:
            raise EngineStateError(
                f"Document ended with {self._context.depth} open element(s)"
            )
        output = self._assembler.result()

        self.metrics.output_length = self._assembler.length
        self.metrics.processing_time_ms = (time.time() - start_time) * 1000
        return output

    def _dispatch(self, event: XMLEvent) -> None:
        if event.type is EventType.START:
            self._open(event.name, event.attributes, empty=False)
        elif event.type is EventType.EMPTY:
            self._open(event.name, event.attributes, empty=True)
        elif event.type is EventType.END:
            self._close(event.name)
        elif event.type is EventType.TEXT:
            self._add_content(escape_text(event.value))
        elif event.type is EventType.WHITESPACE:
            self._add_content(event.value)
        elif event.type is EventType.CDATA:
            self._add_cdata(event.value)

    def _consult(
        self, name: str, attributes: Dict[str, str], kind: NodeKind
    ) -> Union[RuleSet, _Suppress]:
        result = self.callback(name, dict(attributes), kind)
        return interpret_callback_result(
            result, name, self.config.attribute_marker, closing=kind is NodeKind.CLOSE
        )

    def _open(self, name: str, source_attributes: Dict[str, str], empty: bool) -> None:
        if self._ignorable_depth:
            if not empty:
                self._ignorable_depth += 1
            return

        attributes = dict(source_attributes)
        frame = None
        if not empty:
            frame = ElementFrame(name, attributes)
            self._context.push(frame)
            self._check_depth(name)
        self.metrics.elements_processed += 1

        rules = self._consult(name, attributes, NodeKind.EMPTY if empty else NodeKind.OPEN)

        if rules is SUPPRESS:
            self.metrics.elements_suppressed += 1
            if frame is not None:
                # The close of this element is absorbed by the ignorable
                # region, so its frame leaves the context stack now.
                self._context.pop(name)
                self._suppressed = frame
                self._ignorable_depth = 1
                self.logger.debug("Entering ignorable region", extra={"tag": name})
            return

        if empty:
            self.metrics.empty_elements += 1
            rules.validate_for_empty(name)
            if rules.transform_inner is not None:
                self.metrics.transforms_applied += 1
                replacement = call_transform(rules.transform_inner, "")
                self._assembler.emit(rules.insert_before + replacement + rules.insert_after)
                return

        opening_tag = build_opening_tag(
            rules.resolve_tag(name),
            attributes,
            rules.attribute_rules,
            empty,
            self.config.self_closing_style,
            self.config.attribute_marker,
        )

        if empty:
            self._assembler.emit(rules.insert_before + opening_tag + rules.insert_after)
            return

        self._assembler.emit(rules.insert_before)
        if rules.has_transform:
            if rules.transform_outer is not None:
                frame.transform = TransformFrame(rules.transform_outer, TransformMode.OUTER)
            else:
                frame.transform = TransformFrame(
                    rules.transform_inner, TransformMode.INNER, prefix_length=len(opening_tag)
                )
            self._assembler.push_transform(frame.transform)
        self._assembler.emit(opening_tag + rules.insert_at_start)

    def _close(self, name: str) -> None:
        if self._ignorable_depth:
            self._ignorable_depth -= 1
            if not self._ignorable_depth:
                self._leave_ignorable_region(name)
            return

        frame = self._context.pop(name)
        rules = self._consult(name, frame.attributes, NodeKind.CLOSE)

        if rules is SUPPRESS:
            if self.config.check_callback_consistency:
                raise CallbackConsistencyError(
                    f"Callback suppressed the close of <{name}> but not its opening",
                    name,
                )
            if frame.transform is not None:
                # Content collected so far stays, untransformed.
                self._assembler.pop_transform(frame.transform)
                self._assembler.emit(frame.transform.content)
            return

        closing_name = rules.resolve_tag(name)
        closing_tag = render_end_tag(closing_name) if closing_name else ""

        if frame.transform is not None:
            self._assembler.pop_transform(frame.transform)
            self.metrics.transforms_applied += 1
            fragment = frame.transform.resolve(
                rules.insert_at_end, closing_tag, rules.insert_after
            )
            self.logger.debug(
                "Transform resolved",
                extra={"tag": name, "mode": frame.transform.mode.name},
            )
        else:
            fragment = rules.insert_at_end + closing_tag + rules.insert_after

        self._assembler.emit(fragment)

    def _leave_ignorable_region(self, name: str) -> None:
        suppressed = self._suppressed
        self._suppressed = None
        if suppressed is None or suppressed.name != name:
            raise EngineStateError(f"Ignorable region closed by unexpected </{name}>")
        if self.config.check_callback_consistency:
            rules = self._consult(name, suppressed.attributes, NodeKind.CLOSE)
            if rules is not SUPPRESS:
                raise CallbackConsistencyError(
                    f"Callback suppressed the opening of <{name}> but not its close",
                    name,
                )
        self.logger.debug("Leaving ignorable region", extra={"tag": name})

    def _check_depth(self, name: str) -> None:
        depth = self._context.depth
        if depth > self.metrics.max_depth_seen:
            self.metrics.max_depth_seen = depth
        limit = self.config.max_depth
        if limit is not None and depth > limit:
            raise DepthLimitError(
                f"Element <{name}> at depth {depth} exceeds the maximum depth of {limit}",
                depth,
                limit,
            )

    def _add_content(self, content: str) -> None:
        if self._ignorable_depth:
            return
        self.metrics.text_events += 1
        self._assembler.emit(content)

    def _add_cdata(self, content: str) -> None:
        if self._ignorable_depth:
            return
        self.metrics.cdata_sections += 1
        if self.config.keep_cdata:
            self._assembler.emit(wrap_cdata(content))
        else:
            self._assembler.emit(escape_text(content))
