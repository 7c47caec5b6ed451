"""Public transformation API with progressive disclosure.

Level 1 is a set of module-level functions that build one engine per call.
Level 2 is ``XMLRuleTransformer``, which binds a callback and configuration
once and keeps usage statistics across many documents.

Errors are never turned into partial results: the caller receives either the
complete output or the exception that stopped the run.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from xml_rule_transformer.engine import RuleCallback, TransformationEngine
from xml_rule_transformer.shared import (
    TransformationMetrics,
    TransformationResult,
    TransformerConfig,
    XMLInputError,
    get_logger,
)

InputType = Union[str, bytes]
PathType = Union[str, Path]

PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000


def _effective_config(
    config: Optional[TransformerConfig],
    keep_cdata: bool,
    correlation_id: Optional[str],
) -> TransformerConfig:
    config = config or TransformerConfig()
    overrides: Dict[str, Any] = {}
    if not keep_cdata:
        overrides["keep_cdata"] = False
    if correlation_id is not None:
        overrides["correlation_id"] = correlation_id
    return config.override(**overrides) if overrides else config


def _preview(xml: InputType) -> str:
    text = xml if isinstance(xml, str) else xml[:PREVIEW_LENGTH].decode("utf-8", "replace")
    return text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text


def _run(
    xml: InputType,
    callback: RuleCallback,
    config: TransformerConfig,
) -> TransformationResult:
    logger = get_logger(__name__, config.correlation_id, "transform")
    logger.info(
        "Starting transformation",
        extra={"content_length": len(xml), "keep_cdata": config.keep_cdata},
    )
    if logger.is_enabled_for(logging.DEBUG):
        logger.debug("Transformation input", extra={"preview": _preview(xml)})

    engine = TransformationEngine(callback, config)
    output = engine.run(xml)

    logger.info(
        "Transformation completed",
        extra={
            "output_length": len(output),
            "elements_processed": engine.metrics.elements_processed,
            "processing_time_ms": engine.metrics.processing_time_ms,
        },
    )
    return TransformationResult(
        output=output,
        metrics=engine.metrics if config.enable_metrics else TransformationMetrics(),
        correlation_id=config.correlation_id,
    )


def transform(
    xml: InputType,
    callback: RuleCallback,
    keep_cdata: bool = True,
    config: Optional[TransformerConfig] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """Transform an XML document using rules returned by ``callback``.

    The callback is invoked as ``callback(name, attributes, kind)`` for every
    element boundary and returns ``None`` (no change), ``SUPPRESS`` (drop the
    element and its subtree) or a rule mapping.

    Args:
        xml: Well-formed XML document
        callback: Rule callback
        keep_cdata: If False, CDATA sections are emitted as escaped text
        config: Optional transformer configuration
        correlation_id: Optional correlation ID for log records

    Returns:
        The transformed document

    Raises:
        XMLInputError: If ``xml`` is empty or not well-formed
        CallbackError: If ``callback`` is not callable or returns invalid rules

    Examples:
        Renaming a tag:
        >>> transform('<a><b>x</b></a>', lambda tag, attrs, kind: {"tag": "c"} if tag == "b" else None)
        '<a><c>x</c></a>'

        Removing an element with its content:
        >>> transform('<a><b>x</b>y</a>', lambda tag, attrs, kind: SUPPRESS if tag == "b" else None)
        '<a>y</a>'
    """
    effective = _effective_config(config, keep_cdata, correlation_id)
    return _run(xml, callback, effective).output


def transform_string(
    xml_string: str,
    callback: RuleCallback,
    keep_cdata: bool = True,
    config: Optional[TransformerConfig] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """Transform an XML document given as ``str``.

    Raises:
        XMLInputError: If ``xml_string`` is not a string, is empty or is not
            well-formed
    """
    if not isinstance(xml_string, str):
        raise XMLInputError(
            f"transform_string expects str, got {type(xml_string).__name__}"
        )
    return transform(xml_string, callback, keep_cdata, config, correlation_id)


def transform_with_result(
    xml: InputType,
    callback: RuleCallback,
    keep_cdata: bool = True,
    config: Optional[TransformerConfig] = None,
    correlation_id: Optional[str] = None,
) -> TransformationResult:
    """Transform ``xml`` and return the output together with run metrics.

    Examples:
        >>> result = transform_with_result('<a><b/></a>', lambda *args: None)
        >>> result.output
        '<a><b /></a>'
        >>> result.metrics.elements_processed
        2
    """
    effective = _effective_config(config, keep_cdata, correlation_id)
    return _run(xml, callback, effective)


def transform_file(
    file_path: PathType,
    callback: RuleCallback,
    keep_cdata: bool = True,
    encoding: Optional[str] = None,
    config: Optional[TransformerConfig] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """Transform an XML file.

    Without ``encoding`` the file is read as bytes and decoded using its byte
    order mark or XML declaration; with ``encoding`` it is decoded first.

    Raises:
        FileNotFoundError: If ``file_path`` does not exist
        XMLInputError: If the file is empty or not well-formed
    """
    path_obj = Path(file_path)
    effective = _effective_config(config, keep_cdata, correlation_id)
    logger = get_logger(__name__, effective.correlation_id, "transform_file")
    logger.info(
        "Starting file transformation",
        extra={"file_path": str(path_obj), "encoding_override": encoding},
    )

    if encoding:
        content: InputType = path_obj.read_text(encoding=encoding)
    else:
        content = path_obj.read_bytes()
    return _run(content, callback, effective).output


class XMLRuleTransformer:
    """Reusable transformer binding a callback and configuration.

    Attributes:
        callback: Rule callback used for every document
        config: Current transformer configuration
        correlation_id: Correlation ID for log records

    Examples:
        >>> transformer = XMLRuleTransformer(lambda tag, attrs, kind: {"@id": False})
        >>> transformer.transform('<a id="1"><b id="2"/></a>')
        '<a><b /></a>'
        >>> transformer.statistics["total_transformations"]
        1
    """

    def __init__(
        self,
        callback: RuleCallback,
        config: Optional[TransformerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the transformer.

        Raises:
            CallbackError: If ``callback`` is not callable
        """
        self.config = config or TransformerConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        if self.correlation_id != self.config.correlation_id:
            self.config = self.config.override(correlation_id=self.correlation_id)
        # Validates the callback up front.
        TransformationEngine(callback, self.config)
        self.callback = callback

        self.logger = get_logger(__name__, self.correlation_id, "xml_rule_transformer")

        self._transform_count = 0
        self._failed_transformations = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "XMLRuleTransformer initialized",
            extra={"config": self.config.to_dict()},
        )

    def transform_with_result(
        self,
        xml: InputType,
        config_override: Optional[TransformerConfig] = None,
    ) -> TransformationResult:
        """Transform ``xml`` and return output plus metrics.

        Args:
            xml: Well-formed XML document
            config_override: Optional configuration for this document only;
                it inherits the transformer's correlation ID when it has none
        """
        start_time = time.time()
        config = config_override or self.config
        if config.correlation_id is None and self.correlation_id is not None:
            config = config.override(correlation_id=self.correlation_id)
        try:
            result = _run(xml, self.callback, config)
        except Exception:
            self._failed_transformations += 1
            raise
        finally:
            self._transform_count += 1
            self._total_processing_time += (time.time() - start_time) * MS_PER_SECOND
        return result

    def transform(
        self,
        xml: InputType,
        config_override: Optional[TransformerConfig] = None,
    ) -> str:
        """Transform ``xml`` and return the output."""
        return self.transform_with_result(xml, config_override).output

    def transform_file(self, file_path: PathType, encoding: Optional[str] = None) -> str:
        """Transform an XML file with this transformer's callback and configuration."""
        path_obj = Path(file_path)
        if encoding:
            return self.transform(path_obj.read_text(encoding=encoding))
        return self.transform(path_obj.read_bytes())

    def reconfigure(self, config: TransformerConfig) -> None:
        """Replace the configuration used for subsequent documents."""
        self.config = config
        self.logger.info("Transformer reconfigured", extra={"config": config.to_dict()})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get transformer usage statistics."""
        successful = self._transform_count - self._failed_transformations
        return {
            "total_transformations": self._transform_count,
            "successful_transformations": successful,
            "failed_transformations": self._failed_transformations,
            "success_rate": (
                successful / self._transform_count if self._transform_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._transform_count
                if self._transform_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset transformer usage statistics."""
        self._transform_count = 0
        self._failed_transformations = 0
        self._total_processing_time = 0.0
        self.logger.info("Transformer statistics reset")
