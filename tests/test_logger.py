"""
Tests for the structured logger singleton.
"""

import pytest

from utils.logger import LogCategory, LogLevel, configure_logger, get_category_logger, get_logger


@pytest.fixture
def logger():
    logger = get_logger()
    level, colors = logger.min_level, logger.use_colors
    configure_logger(LogLevel.DEBUG, use_colors=False)
    yield logger
    configure_logger(level, use_colors=colors)


class TestLoggerSingleton:
    def test_configure_keeps_instance(self, logger):
        configure_logger(LogLevel.ERROR, use_colors=False)

        assert get_logger() is logger
        assert logger.min_level is LogLevel.ERROR

    def test_bound_loggers_follow_configuration(self, logger, capsys):
        bound = get_category_logger(LogCategory.TIMER)
        configure_logger(LogLevel.WARN, use_colors=False)

        bound.debug("hidden")
        bound.warn("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "shown" in out


class TestFormatting:
    def test_category_level_and_details(self, logger, capsys):
        log = logger.for_category(LogCategory.SIMULATOR)

        log.info("Phase changed", name="fadeIn", phase="animating")

        lines = capsys.readouterr().out.splitlines()
        assert "SIMULATOR" in lines[0]
        assert "✓ Phase changed" in lines[0]
        assert lines[1].strip() == "├─ name: fadeIn"
        assert lines[2].strip() == "└─ phase: animating"

    def test_category_override(self, logger, capsys):
        log = logger.for_category(LogCategory.HOOK)

        log.log("Reset", LogLevel.ERROR, category=LogCategory.LIFECYCLE)
        log.with_category(LogCategory.STYLE).warn("Cleared")

        out = capsys.readouterr().out
        assert "LIFECYCLE" in out and "✗ Reset" in out
        assert "STYLE" in out and "⚠ Cleared" in out

    def test_no_colors_when_disabled(self, logger, capsys):
        logger.error(LogCategory.CONFIG, "Broken")

        assert "\033[" not in capsys.readouterr().out
