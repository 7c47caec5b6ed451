"""Input adapters for transforming already-parsed XML trees.

Adapters serialize an element from lxml or the standard library's
ElementTree and hand the markup to ``transform``. The element's tail text is
never part of the serialized document.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from xml_rule_transformer.engine import RuleCallback
from xml_rule_transformer.shared import TransformerConfig, TransformerError, get_logger

from .transform import transform


@dataclass(frozen=True)
class AdapterMetadata:
    """Metadata about an input adapter."""

    name: str
    target_library: str
    description: str


class InputAdapter(ABC):
    """Base class for adapters that turn a tree object into XML markup."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def accepts(self, target_data: Any) -> bool:
        """Check if ``target_data`` is an element or tree of the target library."""

    @abstractmethod
    def to_xml(self, target_data: Any) -> str:
        """Serialize ``target_data`` to an XML string."""

    def transform(
        self,
        target_data: Any,
        callback: RuleCallback,
        keep_cdata: bool = True,
        config: Optional[TransformerConfig] = None,
    ) -> str:
        """Serialize ``target_data`` and transform the resulting markup."""
        xml_string = self.to_xml(target_data)
        self._logger.debug(
            "Element serialized for transformation",
            extra={"adapter": self.metadata.name, "xml_length": len(xml_string)},
        )
        return transform(
            xml_string, callback, keep_cdata, config, self.correlation_id
        )


class LxmlAdapter(InputAdapter):
    """Adapter for lxml.etree elements and trees."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            target_library="lxml",
            description="Transforms lxml.etree elements and element trees",
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def accepts(self, target_data: Any) -> bool:
        if not self.is_available():
            return False
        import lxml.etree as etree

        return isinstance(target_data, (etree._Element, etree._ElementTree))

    def to_xml(self, target_data: Any) -> str:
        import lxml.etree as etree

        if isinstance(target_data, etree._ElementTree):
            target_data = target_data.getroot()
        return etree.tostring(target_data, encoding="unicode", with_tail=False)


class ElementTreeAdapter(InputAdapter):
    """Adapter for xml.etree.ElementTree elements and trees."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            target_library="xml.etree.ElementTree",
            description="Transforms xml.etree.ElementTree elements and element trees",
        )

    def is_available(self) -> bool:
        return True

    def accepts(self, target_data: Any) -> bool:
        import xml.etree.ElementTree as ET

        return isinstance(target_data, (ET.Element, ET.ElementTree))

    def to_xml(self, target_data: Any) -> str:
        import xml.etree.ElementTree as ET

        if isinstance(target_data, ET.ElementTree):
            target_data = target_data.getroot()
        if target_data.tail:
            target_data = copy.copy(target_data)
            target_data.tail = None
        return ET.tostring(target_data, encoding="unicode")


_ADAPTERS: Dict[str, type] = {
    "lxml": LxmlAdapter,
    "elementtree": ElementTreeAdapter,
}


def list_adapters() -> List[AdapterMetadata]:
    """List metadata of all adapters whose target library is available."""
    adapters = [adapter_class() for adapter_class in _ADAPTERS.values()]
    return [adapter.metadata for adapter in adapters if adapter.is_available()]


def get_adapter(name: str, correlation_id: Optional[str] = None) -> InputAdapter:
    """Get an adapter by name.

    Raises:
        TransformerError: If no adapter has that name or its library is missing
    """
    adapter_class = _ADAPTERS.get(name)
    if adapter_class is None:
        raise TransformerError(
            f"Unknown adapter '{name}'; available: {sorted(_ADAPTERS)}"
        )
    adapter = adapter_class(correlation_id)
    if not adapter.is_available():
        raise TransformerError(
            f"Adapter '{name}' requires {adapter.metadata.target_library}, "
            "which is not installed"
        )
    return adapter


def transform_element(
    element: Any,
    callback: RuleCallback,
    keep_cdata: bool = True,
    config: Optional[TransformerConfig] = None,
    adapter: Optional[str] = None,
) -> str:
    """Transform an lxml or ElementTree element (or tree).

    Args:
        element: Element or element tree to transform
        callback: Rule callback
        keep_cdata: If False, CDATA sections are emitted as escaped text
        config: Optional transformer configuration
        adapter: Adapter name; detected from the element type if omitted

    Raises:
        TransformerError: If no adapter accepts ``element``
    """
    correlation_id = config.correlation_id if config else None
    if adapter is not None:
        selected = get_adapter(adapter, correlation_id)
    else:
        candidates = [cls(correlation_id) for cls in _ADAPTERS.values()]
        matching = [candidate for candidate in candidates if candidate.accepts(element)]
        if not matching:
            raise TransformerError(
                f"No adapter accepts objects of type {type(element).__name__}"
            )
        selected = matching[0]
    return selected.transform(element, callback, keep_cdata, config)
