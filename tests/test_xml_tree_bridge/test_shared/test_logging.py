"""Tests for correlation-aware logging."""

import logging

from xml_tree_bridge.shared.logging import get_logger


class TestCorrelationLogger:
    """Test that records carry component and correlation ID."""

    def test_component_defaults_to_module_name(self):
        """Test the default component name."""
        logger = get_logger("xml_tree_bridge.stream.writer")

        assert logger.component == "writer"
        assert logger.correlation_id is None

    def test_extra_fields_attached(self, caplog):
        """Test that extra fields reach the log record."""
        logger = get_logger("xml_tree_bridge.test", "req-1", "reader")

        with caplog.at_level(logging.INFO, logger="xml_tree_bridge.test"):
            logger.info("Read XML file", extra={"path": "/tmp/a.xml"})

        record = caplog.records[-1]
        assert record.message == "Read XML file"
        assert record.component == "reader"
        assert record.correlation_id == "req-1"
        assert record.path == "/tmp/a.xml"

    def test_disabled_level_is_skipped(self, caplog):
        """Test that records below the logger level are not emitted."""
        logger = get_logger("xml_tree_bridge.quiet")

        with caplog.at_level(logging.WARNING, logger="xml_tree_bridge.quiet"):
            logger.debug("hidden")
            assert not logger.is_enabled_for(logging.DEBUG)

        assert not [r for r in caplog.records if r.message == "hidden"]
