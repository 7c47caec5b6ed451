"""Tests for correlation-aware logging and result objects."""

import logging
from unittest.mock import patch

import pytest

from xml_rule_transformer.shared import (
    CorrelationLogger,
    TransformationMetrics,
    TransformationResult,
    configure_logging,
    get_logger,
)


class TestCorrelationLogger:
    """Test correlation logger behaviour."""

    def test_component_defaults_to_module_name(self):
        logger = get_logger("xml_rule_transformer.engine.transformer")
        assert logger.component == "transformer"

    def test_records_carry_correlation_fields(self, caplog):
        logger = get_logger("xml_rule_transformer.test", "run-42", "tests")
        with caplog.at_level(logging.INFO, logger="xml_rule_transformer.test"):
            logger.info("hello", extra={"items": 3})

        record = caplog.records[-1]
        assert record.getMessage() == "hello"
        assert record.component == "tests"
        assert record.correlation_id == "run-42"
        assert record.items == 3

    def test_bind_adds_context(self, caplog):
        logger = get_logger("xml_rule_transformer.test", "run-1").bind(document="a.xml")
        assert isinstance(logger, CorrelationLogger)
        with caplog.at_level(logging.WARNING, logger="xml_rule_transformer.test"):
            logger.warning("careful")
        assert caplog.records[-1].document == "a.xml"
        assert caplog.records[-1].correlation_id == "run-1"

    def test_debug_respects_level(self, caplog):
        logger = get_logger("xml_rule_transformer.test")
        with caplog.at_level(logging.INFO, logger="xml_rule_transformer.test"):
            logger.debug("hidden")
        assert not any(r.getMessage() == "hidden" for r in caplog.records)

    def test_is_enabled_for(self):
        logger = get_logger("xml_rule_transformer.test")
        with patch.object(logger.logger, "isEnabledFor", return_value=True) as mock_enabled:
            assert logger.is_enabled_for(logging.DEBUG)
        mock_enabled.assert_called_once_with(logging.DEBUG)


class TestConfigureLogging:
    """Test root logging setup for command-line use."""

    def test_valid_level(self):
        with patch("logging.basicConfig") as mock_basic_config:
            configure_logging("DEBUG")
        assert mock_basic_config.call_args.kwargs["level"] == logging.DEBUG

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="logging level"):
            configure_logging("CHATTY")


class TestResults:
    """Test metrics and result objects."""

    def test_elements_per_second(self):
        metrics = TransformationMetrics(elements_processed=50, processing_time_ms=100.0)
        assert metrics.elements_per_second == 500.0

    def test_elements_per_second_without_time(self):
        assert TransformationMetrics(elements_processed=5).elements_per_second == 0.0

    def test_metrics_to_dict(self):
        data = TransformationMetrics(transforms_applied=2).to_dict()
        assert data["transforms_applied"] == 2
        assert data["elements_processed"] == 0

    def test_result_str(self):
        result = TransformationResult(output="<a />", correlation_id="x")
        assert str(result) == "<a />"
        assert result.metrics == TransformationMetrics()
