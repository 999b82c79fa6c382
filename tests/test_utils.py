"""Tests for the parser wrapper, terminal-safe output and logging setup."""
import logging
from io import StringIO

from rich.logging import RichHandler

from staticizer.analyzer.parser import JavaParser
from staticizer.utils import logger as logger_module
from staticizer.utils.console import SafeConsole
from staticizer.utils.logger import configure_logging, get_logger, sanitize_for_terminal


class TestJavaParser:

    def test_parse_text_and_bytes_alike(self, java_parser):
        text_tree = java_parser.parse_source("class A { }")
        bytes_tree = java_parser.parse_source(b"class A { }")
        assert str(text_tree.root_node) == str(bytes_tree.root_node)

    def test_supports(self):
        assert JavaParser.supports("src/A.java")
        assert JavaParser.supports("Legacy.JAVA")
        assert not JavaParser.supports("A.kt")
        assert not JavaParser.supports("A.class")


class TestTerminalOutput:

    def test_utf8_terminal_keeps_glyphs(self, monkeypatch):
        monkeypatch.setattr(logger_module, 'detect_terminal_encoding', lambda: 'utf-8')
        assert sanitize_for_terminal("✓ done → next") == "✓ done → next"

    def test_legacy_terminal_gets_ascii(self, monkeypatch):
        monkeypatch.setattr(logger_module, 'detect_terminal_encoding', lambda: 'cp1252')
        assert sanitize_for_terminal("✓ done → next…") == "[OK] done -> next..."

    def test_safe_console_sanitizes_strings(self, monkeypatch):
        monkeypatch.setattr(logger_module, 'detect_terminal_encoding', lambda: 'ascii')
        buffer = StringIO()
        console = SafeConsole(file=buffer, width=80)
        console.print("✓ Rewrote A.java")
        assert buffer.getvalue() == "[OK] Rewrote A.java\n"


class TestLogging:

    def test_logger_names_are_prefixed(self):
        assert get_logger("analyzer.scope").name == "staticizer.analyzer.scope"
        assert get_logger("staticizer.main").name == "staticizer.main"

    def test_handler_is_attached_once(self):
        configure_logging("INFO")
        root = configure_logging("DEBUG")
        handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert root.level == logging.DEBUG

    def test_failed_class_is_logged(self, staticize, caplog):
        source = "class Bad { private int two() { return 1 +; } }"
        with caplog.at_level(logging.WARNING, logger="staticizer"):
            staticize.run_source(source, "Bad.java")
        assert any(
            "Bad.java" in record.getMessage() and record.levelno == logging.WARNING
            for record in caplog.records
        )
