"""Serialization helpers shared by the engine.

Values coming from the event source are already decoded, so they are always
escaped again on output.
"""

from typing import Iterable, Tuple

SELF_CLOSING_SUFFIXES = {
    "spaced": " />",
    "compact": "/>",
}


def escape_text(text: str) -> str:
    """Escape character data for use between tags."""
    return (text
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;"))


def escape_attribute(value: str) -> str:
    """Escape an attribute value for use inside double quotes."""
    return (value
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;"))


def render_attributes(attributes: Iterable[Tuple[str, str]]) -> str:
    """Render ``(name, value)`` pairs as `` name="value"`` segments."""
    return "".join(
        f' {name}="{escape_attribute(value)}"' for name, value in attributes
    )


def render_start_tag(
    name: str,
    attributes: Iterable[Tuple[str, str]] = (),
    self_closing: bool = False,
    style: str = "spaced",
) -> str:
    """Render an opening (or self-closing) tag."""
    suffix = SELF_CLOSING_SUFFIXES[style] if self_closing else ">"
    return f"<{name}{render_attributes(attributes)}{suffix}"


def render_end_tag(name: str) -> str:
    """Render a closing tag."""
    return f"</{name}>"


def wrap_cdata(content: str) -> str:
    """Wrap content in a CDATA section."""
    return f"<![CDATA[{content}]]>"
