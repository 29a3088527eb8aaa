"""Tests for diagnostic records and their collection."""

import pytest
from loguru import logger

from script2rs.transpiler.diagnostics import DiagnosticCollector, Severity, SourceSpan
from script2rs.transpiler.errors import ParseError


@pytest.fixture
def debug_messages():
    """Messages logged by the package at DEBUG level while the test runs."""
    messages = []
    logger.enable("script2rs")
    sink = logger.add(messages.append, level="DEBUG", format="{message}")
    yield messages
    logger.remove(sink)
    logger.disable("script2rs")


class TestDiagnosticCollector:
    """Tests for `DiagnosticCollector`."""

    def test_records_are_sorted_by_span(self):
        # Arrange
        collector = DiagnosticCollector("hero.pup")

        # Act
        collector.add("late", "parse-error", SourceSpan(start=20, line=3, column=1))
        collector.report(ParseError("early", SourceSpan(start=4, line=1, column=5)))
        collector.add("note", "hint", severity=Severity.NOTE)

        # Assert
        assert [d.message for d in collector.diagnostics] == ["note", "early", "late"]
        assert collector.error_count == 2
        assert len(collector) == 3

    def test_empty_collector_is_still_a_collector(self):
        collector = DiagnosticCollector("hero.pup")
        assert len(collector) == 0
        assert not collector.has_errors

    def test_every_record_is_traced(self, debug_messages):
        """Test that reported and added records reach the debug log."""
        # Arrange
        collector = DiagnosticCollector("hero.pup")

        # Act
        collector.report(ParseError("Unexpected '}'", SourceSpan(start=4, line=2, column=3)))
        collector.add("Cannot write out.rs", "io-error")

        # Assert
        assert "Diagnostic: hero.pup:2:3: error[parse-error]: Unexpected '}'\n" in debug_messages
        assert "Diagnostic: hero.pup:1:1: error[io-error]: Cannot write out.rs\n" in debug_messages
