"""Tests for the public transformation API."""

import logging
import tempfile
from pathlib import Path

import pytest

from xml_rule_transformer import (
    SUPPRESS,
    CallbackError,
    RuleValidationError,
    TransformationResult,
    TransformerConfig,
    XMLInputError,
    XMLRuleTransformer,
    transform,
    transform_file,
    transform_string,
    transform_with_result,
)


def strip_ids(tag, attributes, kind):
    return {"@id": False}


def drop_notes(tag, attributes, kind):
    return SUPPRESS if tag == "note" else None


class TestTransform:
    """Test the Level 1 transform function."""

    def test_basic(self):
        assert transform('<a id="1"><b id="2">x</b></a>', strip_ids) == "<a><b>x</b></a>"

    def test_bytes_input(self):
        assert transform(b"<a><note/>x</a>", drop_notes) == "<a>x</a>"

    def test_keep_cdata_flag(self):
        xml = "<a><![CDATA[1 < 2]]></a>"
        assert transform(xml, drop_notes) == xml
        assert transform(xml, drop_notes, keep_cdata=False) == "<a>1 &lt; 2</a>"

    def test_keep_cdata_overrides_config(self):
        xml = "<a><![CDATA[x]]></a>"
        config = TransformerConfig.compact()
        assert transform(xml, drop_notes, keep_cdata=False, config=config) == "<a>x</a>"

    def test_config(self):
        config = TransformerConfig.compact()
        assert transform("<a><b/></a>", drop_notes, config=config) == "<a><b/></a>"

    def test_callback_not_callable(self):
        with pytest.raises(CallbackError):
            transform("<a/>", {"tag": "b"})

    def test_empty_input(self):
        with pytest.raises(XMLInputError, match="empty"):
            transform("", drop_notes)

    def test_malformed_input(self):
        with pytest.raises(XMLInputError, match="could not be parsed"):
            transform("<a>", drop_notes)

    def test_logs_with_correlation_id(self, caplog):
        with caplog.at_level(logging.INFO, logger="xml_rule_transformer.api.transform"):
            transform("<a/>", drop_notes, correlation_id="doc-7")
        completed = [r for r in caplog.records if r.getMessage() == "Transformation completed"]
        assert completed
        assert completed[0].correlation_id == "doc-7"
        assert completed[0].component == "transform"

    def test_input_preview_only_at_debug(self, caplog):
        with caplog.at_level(logging.INFO, logger="xml_rule_transformer.api.transform"):
            transform("<a/>", drop_notes)
        assert not [r for r in caplog.records if r.getMessage() == "Transformation input"]

        with caplog.at_level(logging.DEBUG, logger="xml_rule_transformer.api.transform"):
            transform("<a>" + "x" * 200 + "</a>", drop_notes)
        previews = [r for r in caplog.records if r.getMessage() == "Transformation input"]
        assert previews[0].preview == "<a>" + "x" * 97 + "..."


class TestTransformString:
    """Test transform_string."""

    def test_string(self):
        assert transform_string("<a><note>n</note></a>", drop_notes) == "<a></a>"

    def test_rejects_bytes(self):
        with pytest.raises(XMLInputError, match="expects str"):
            transform_string(b"<a/>", drop_notes)


class TestTransformWithResult:
    """Test transform_with_result."""

    def test_result(self):
        result = transform_with_result("<a><note>n</note><b/></a>", drop_notes,
                                       correlation_id="abc")
        assert isinstance(result, TransformationResult)
        assert result.output == "<a><b /></a>"
        assert result.correlation_id == "abc"
        assert result.metrics.elements_processed == 3
        assert result.metrics.elements_suppressed == 1
        assert result.metrics.input_length == len("<a><note>n</note><b/></a>")

    def test_metrics_disabled(self):
        config = TransformerConfig(enable_metrics=False)
        result = transform_with_result("<a><b/></a>", drop_notes, config=config)
        assert result.output == "<a><b /></a>"
        assert result.metrics.elements_processed == 0


class TestTransformFile:
    """Test transform_file."""

    def test_file(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".xml", delete=False,
                                         encoding="utf-8") as f:
            f.write('<doc id="1"><p id="2">é</p></doc>')
            file_path = Path(f.name)

        try:
            assert transform_file(file_path, strip_ids) == "<doc><p>é</p></doc>"
            assert transform_file(str(file_path), strip_ids) == "<doc><p>é</p></doc>"
        finally:
            file_path.unlink()

    def test_file_with_declared_encoding(self, tmp_path):
        file_path = tmp_path / "latin.xml"
        file_path.write_bytes(
            '<?xml version="1.0" encoding="ISO-8859-1"?><doc>caf\xe9</doc>'.encode("latin-1")
        )
        assert transform_file(file_path, drop_notes) == "<doc>caf\xe9</doc>"

    def test_file_with_explicit_encoding(self, tmp_path):
        file_path = tmp_path / "utf16.xml"
        file_path.write_text("<doc>ü</doc>", encoding="utf-16")
        assert transform_file(file_path, drop_notes, encoding="utf-16") == "<doc>ü</doc>"

    def test_utf16_file_without_explicit_encoding(self, tmp_path):
        file_path = tmp_path / "wide.xml"
        file_path.write_text("<doc><br/>\u00fc</doc>", encoding="utf-16")
        assert transform_file(file_path, drop_notes) == "<doc><br />\u00fc</doc>"

    def test_utf16_empty_element_rejects_content_rules(self, tmp_path):
        file_path = tmp_path / "wide.xml"
        file_path.write_text("<r><e/></r>", encoding="utf-16")

        def fill_e(tag, attributes, kind):
            return {"insert-at-start": "X"} if tag == "e" else None

        with pytest.raises(RuleValidationError, match="insert-at-start"):
            transform_file(file_path, fill_e)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            transform_file(tmp_path / "missing.xml", drop_notes)


class TestXMLRuleTransformer:
    """Test the Level 2 XMLRuleTransformer class."""

    def test_transform(self):
        transformer = XMLRuleTransformer(strip_ids)
        assert transformer.transform('<a id="1"/>') == "<a />"
        assert transformer.transform('<b id="1">x</b>') == "<b>x</b>"

    def test_statistics(self):
        transformer = XMLRuleTransformer(drop_notes, correlation_id="batch")
        transformer.transform("<a/>")
        with pytest.raises(XMLInputError):
            transformer.transform("<a>")

        stats = transformer.statistics
        assert stats["total_transformations"] == 2
        assert stats["successful_transformations"] == 1
        assert stats["failed_transformations"] == 1
        assert stats["success_rate"] == 0.5
        assert stats["average_processing_time_ms"] >= 0
        assert stats["correlation_id"] == "batch"

    def test_reset_statistics(self):
        transformer = XMLRuleTransformer(drop_notes)
        transformer.transform("<a/>")
        transformer.reset_statistics()
        stats = transformer.statistics
        assert stats["total_transformations"] == 0
        assert stats["success_rate"] == 0.0

    def test_correlation_id_reaches_config(self):
        transformer = XMLRuleTransformer(drop_notes, correlation_id="abc")
        assert transformer.config.correlation_id == "abc"
        result = transformer.transform_with_result("<a/>")
        assert result.correlation_id == "abc"

    def test_config_override_keeps_correlation_id(self):
        transformer = XMLRuleTransformer(drop_notes, correlation_id="abc")
        result = transformer.transform_with_result("<a/>", TransformerConfig.compact())
        assert result.correlation_id == "abc"

        own_id = TransformerConfig(correlation_id="xyz")
        assert transformer.transform_with_result("<a/>", own_id).correlation_id == "xyz"

    def test_reconfigure(self):
        transformer = XMLRuleTransformer(drop_notes)
        transformer.reconfigure(TransformerConfig.compact())
        assert transformer.transform("<a><b/></a>") == "<a><b/></a>"

    def test_config_override(self):
        transformer = XMLRuleTransformer(drop_notes)
        xml = "<a><![CDATA[<]]></a>"
        assert transformer.transform(xml, TransformerConfig.plain_text_cdata()) == "<a>&lt;</a>"
        assert transformer.transform(xml) == xml

    def test_transform_file(self, tmp_path):
        file_path = tmp_path / "doc.xml"
        file_path.write_text("<a><note>x</note>y</a>", encoding="utf-8")
        assert XMLRuleTransformer(drop_notes).transform_file(file_path) == "<a>y</a>"

    def test_invalid_callback(self):
        with pytest.raises(CallbackError):
            XMLRuleTransformer(None)
