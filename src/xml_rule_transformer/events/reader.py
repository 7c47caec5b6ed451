"""Structural event source backed by the expat parser.

The reader turns a well-formed XML document into a flat list of structural
events: element starts, self-closing elements, element ends, text, whitespace
and CDATA sections. The whole document is parsed before the first event is
handed out, so a malformed document fails before any consumer sees an event.
"""

import codecs
import re
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import ClassVar, Dict, List, Optional, Tuple, Union
from xml.parsers import expat

from xml_rule_transformer.shared.errors import XMLInputError
from xml_rule_transformer.shared.logging import get_logger

XML_WHITESPACE = " \t\r\n"
SELF_CLOSING_MARK = b"/>"


class EventType(Enum):
    """Structural event types produced by the reader."""

    START = auto()       # Opening tag of an element with content: <a>
    EMPTY = auto()       # Self-closing element: <a/>
    END = auto()         # Closing tag: </a>
    TEXT = auto()        # Character data (entities already substituted)
    WHITESPACE = auto()  # Character data consisting only of XML whitespace
    CDATA = auto()       # Content of a CDATA section


@dataclass(frozen=True)
class EventPosition:
    """Position information for events."""

    line: int
    column: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")


@dataclass(frozen=True)
class XMLEvent:
    """A single structural event.

    ``name`` and ``attributes`` are set for element events, ``value`` for
    character events. Names are qualified (``prefix:local``) exactly as they
    appear in the source.
    """

    type: EventType
    name: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    value: str = ""
    position: Optional[EventPosition] = None

    @property
    def is_element(self) -> bool:
        return self.type in (EventType.START, EventType.EMPTY, EventType.END)


class EncodingDetector:
    """Detects the character encoding of a byte document.

    Detection order is byte order mark, then the byte pattern of a BOM-less
    UTF-16/UTF-32 document start, then the encoding named in the XML
    declaration, then UTF-8.
    """

    # Longest marks first: the UTF-32-LE mark starts with the UTF-16-LE one.
    BOM_PATTERNS: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
    )

    # First four bytes of "<?" or "<x" without a byte order mark.
    BOMLESS_PATTERNS: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (b"\x00\x00\x00<", "utf-32-be"),
        (b"<\x00\x00\x00", "utf-32-le"),
        (b"\x00<\x00", "utf-16-be"),
        (b"<\x00", "utf-16-le"),
    )

    XML_DECLARATION_PATTERN: ClassVar["re.Pattern[bytes]"] = re.compile(
        rb'<\?xml\s[^>]*?encoding\s*=\s*["\']([A-Za-z][A-Za-z0-9._-]*)["\']'
    )

    DECLARATION_SEARCH_BYTES = 1024

    def detect(self, data: bytes) -> Tuple[str, int]:
        """Return the encoding of ``data`` and the length of its byte order mark."""
        for bom, encoding in self.BOM_PATTERNS:
            if data.startswith(bom):
                return encoding, len(bom)
        for pattern, encoding in self.BOMLESS_PATTERNS:
            if data.startswith(pattern):
                return encoding, 0
        match = self.XML_DECLARATION_PATTERN.match(
            data[:self.DECLARATION_SEARCH_BYTES]
        )
        if match:
            return match.group(1).decode("ascii").lower(), 0
        return "utf-8", 0

    def decode(self, data: bytes) -> str:
        """Decode ``data`` to text, dropping any byte order mark.

        Raises:
            XMLInputError: If the encoding is unknown or the bytes do not match it
        """
        encoding, bom_length = self.detect(data)
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise XMLInputError(f"Unsupported document encoding '{encoding}'") from e
        try:
            return data[bom_length:].decode(encoding)
        except UnicodeDecodeError as e:
            raise XMLInputError(
                f"Input XML is not valid {encoding}: {e.reason} at byte {e.start + bom_length}"
            ) from e


class _EventCollector:
    """Expat handler set that records events in document order."""

    def __init__(self, parser: "expat.XMLParserType", data: bytes,
                 allow_entity_declarations: bool) -> None:
        self.parser = parser
        self.data = data
        self.events: List[XMLEvent] = []
        self._text: List[str] = []
        self._text_position: Optional[EventPosition] = None
        self._in_cdata = False
        self._last_start: Optional[int] = None
        self._last_start_byte = -1

        parser.ordered_attributes = True
        parser.StartElementHandler = self.start_element
        parser.EndElementHandler = self.end_element
        parser.CharacterDataHandler = self.characters
        parser.StartCdataSectionHandler = self.start_cdata
        parser.EndCdataSectionHandler = self.end_cdata
        if not allow_entity_declarations:
            parser.EntityDeclHandler = self.forbid_entity

    def _position(self) -> EventPosition:
        return EventPosition(
            self.parser.CurrentLineNumber, self.parser.CurrentColumnNumber + 1
        )

    def start_element(self, name: str, attrs: List[str]) -> None:
        self.flush_text()
        attributes = dict(zip(attrs[0::2], attrs[1::2]))
        self.events.append(
            XMLEvent(EventType.START, name, attributes, position=self._position())
        )
        self._last_start = len(self.events) - 1
        self._last_start_byte = self.parser.CurrentByteIndex

    def end_element(self, name: str) -> None:
        self.flush_text()
        index = self._last_start
        self._last_start = None
        if index == len(self.events) - 1 and self._closes_own_start_tag():
            self.events[index] = replace(self.events[index], type=EventType.EMPTY)
            return
        self.events.append(XMLEvent(EventType.END, name, position=self._position()))

    def _closes_own_start_tag(self) -> bool:
        # Expat reports the end of a self-closing element either at the start
        # tag itself or directly behind its "/>"; an explicit end tag is never
        # preceded by "/>".
        byte_index = self.parser.CurrentByteIndex
        if byte_index == self._last_start_byte:
            return True
        return self.data[byte_index - 2:byte_index] == SELF_CLOSING_MARK

    def characters(self, data: str) -> None:
        if not self._text and not self._in_cdata:
            self._text_position = self._position()
        self._text.append(data)

    def start_cdata(self) -> None:
        self.flush_text()
        self._in_cdata = True
        self._text_position = self._position()

    def end_cdata(self) -> None:
        content = "".join(self._text)
        self.events.append(
            XMLEvent(EventType.CDATA, value=content, position=self._text_position)
        )
        self._text = []
        self._in_cdata = False
        self._last_start = None

    def flush_text(self) -> None:
        if self._in_cdata or not self._text:
            return
        content = "".join(self._text)
        event_type = (
            EventType.WHITESPACE if not content.strip(XML_WHITESPACE)
            else EventType.TEXT
        )
        self.events.append(
            XMLEvent(event_type, value=content, position=self._text_position)
        )
        self._text = []
        self._last_start = None

    def forbid_entity(self, entity_name: str, *_args: object) -> None:
        raise XMLInputError(
            f"Entity declarations are not allowed (found '{entity_name}')",
            self.parser.CurrentLineNumber,
            self.parser.CurrentColumnNumber + 1,
        )


class XMLEventReader:
    """Reads a complete XML document into structural events.

    Example:
        >>> reader = XMLEventReader()
        >>> [event.type.name for event in reader.read('<a><b/>x</a>')]
        ['START', 'EMPTY', 'TEXT', 'END']
    """

    def __init__(
        self,
        allow_entity_declarations: bool = True,
        max_input_size_bytes: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.allow_entity_declarations = allow_entity_declarations
        self.max_input_size_bytes = max_input_size_bytes
        self.encoding_detector = EncodingDetector()
        self.logger = get_logger(__name__, correlation_id, "event_reader")

    def read(self, xml: Union[str, bytes]) -> List[XMLEvent]:
        """Parse ``xml`` and return all of its structural events.

        String input is parsed as UTF-8 regardless of its XML declaration.
        Bytes input is first decoded using its byte order mark or declared
        encoding, so the parser always sees UTF-8.

        Raises:
            XMLInputError: If the input is empty, too large, wrongly encoded
                or not well-formed
        """
        if isinstance(xml, (bytes, bytearray)):
            input_size = len(xml)
            self._check_size(input_size)
            xml = self.encoding_detector.decode(bytes(xml))
            data = xml.encode("utf-8")
        elif isinstance(xml, str):
            data = xml.encode("utf-8")
            input_size = len(data)
            self._check_size(input_size)
        else:
            raise XMLInputError(
                f"XML input must be str or bytes, not {type(xml).__name__}"
            )

        if not data.strip():
            raise XMLInputError("Input XML is empty and could not be parsed")

        parser = expat.ParserCreate("utf-8")
        collector = _EventCollector(parser, data, self.allow_entity_declarations)
        try:
            parser.Parse(data, True)
        except expat.ExpatError as e:
            raise XMLInputError(
                f"Input XML could not be parsed: {expat.ErrorString(e.code)} "
                f"(line {e.lineno}, column {e.offset + 1})",
                e.lineno,
                e.offset + 1,
            ) from e
        collector.flush_text()

        self.logger.debug(
            "Document read into events",
            extra={"input_bytes": input_size, "event_count": len(collector.events)},
        )
        return collector.events

    def _check_size(self, size: int) -> None:
        if self.max_input_size_bytes is not None and size > self.max_input_size_bytes:
            raise XMLInputError(
                f"Input XML is {size} bytes, exceeding the limit of "
                f"{self.max_input_size_bytes} bytes"
            )
