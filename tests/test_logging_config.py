import logging

import pytest

from idml_toolkit.config import ConfigManager
from idml_toolkit.logging_config import setup_logging


@pytest.fixture
def restore_logging():
    """Snapshot logger state touched by setup_logging and restore it afterwards."""
    names = ["", "idml_toolkit", "idml_toolkit.core.loader"]
    saved = {}
    for name in names:
        logger = logging.getLogger(name)
        saved[name] = (logger.level, list(logger.handlers), logger.propagate, logger.disabled)
    yield
    for name, (level, handlers, propagate, disabled) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.setLevel(level)
        logger.handlers = handlers
        logger.propagate = propagate
        logger.disabled = disabled


class TestSetupLogging:
    """Test cases for setup_logging."""

    def test_writes_log_file(self, temp_dir, monkeypatch, restore_logging):
        """Test that the file handler is redirected to the log directory."""
        log_dir = temp_dir / "logs"
        monkeypatch.setenv("IDML_TOOLKIT_LOG_DIR", str(log_dir))
        setup_logging()

        logging.getLogger("idml_toolkit.core.loader").info("hello from loader")
        for handler in logging.getLogger("idml_toolkit").handlers:
            handler.flush()
        assert "hello from loader" in (log_dir / "app.log").read_text(encoding="utf-8")

    def test_minimal_fallback(self, temp_dir, monkeypatch, restore_logging):
        """Test that an empty logging section falls back to console logging."""
        monkeypatch.setenv("IDML_TOOLKIT_LOG_DIR", str(temp_dir / "logs"))
        monkeypatch.setattr(ConfigManager, "get_logging_config", lambda self: {})
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_debug_overrides(self, temp_dir, monkeypatch, restore_logging):
        """Test that listed modules are switched to DEBUG."""
        monkeypatch.setenv("IDML_TOOLKIT_LOG_DIR", str(temp_dir / "logs"))
        monkeypatch.setenv("IDML_TOOLKIT_DEBUG_MODULES", "idml_toolkit.core.loader, ")
        setup_logging()
        assert logging.getLogger("idml_toolkit.core.loader").level == logging.DEBUG
