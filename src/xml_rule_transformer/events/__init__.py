"""Structural XML event source.

Key Components:
    XMLEventReader: Parses a document into structural events
    XMLEvent: A single start, empty, end, text, whitespace or CDATA event
    EventType: Enumeration of event types
    EventPosition: Line and column of an event
    EncodingDetector: Picks the character encoding of byte input
"""

from .reader import EncodingDetector, EventPosition, EventType, XMLEvent, XMLEventReader

__all__ = [
    "EncodingDetector",
    "EventPosition",
    "EventType",
    "XMLEvent",
    "XMLEventReader",
]
