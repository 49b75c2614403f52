from __future__ import annotations

"""Central logging configuration for IDML Toolkit.

Import and call :func:`setup_logging` at application start-up. The library
modules themselves only create loggers and never configure handlers.
"""

import copy
import logging
import logging.config
import os

from idml_toolkit.config import ConfigManager

__all__ = ["setup_logging", "LOG_DIR_ENV", "DEBUG_MODULES_ENV"]

LOG_DIR_ENV = "IDML_TOOLKIT_LOG_DIR"
DEBUG_MODULES_ENV = "IDML_TOOLKIT_DEBUG_MODULES"

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging() -> None:
    """Configure logging from the ``logging`` YAML section."""
    log_dir = os.environ.get(LOG_DIR_ENV, "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    logging_config = copy.deepcopy(ConfigManager().get_logging_config())
    if logging_config.get("version"):
        handlers = logging_config.get("handlers", {})
        if "file" in handlers:
            handlers["file"]["filename"] = log_file
        try:
            logging.config.dictConfig(logging_config)
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            _setup_minimal_logging()
            logging.getLogger(__name__).error("Invalid logging config, using minimal fallback: %s", exc)
        else:
            logging.getLogger(__name__).info("===== Logging initialised from config files =====")
    else:
        _setup_minimal_logging()
        logging.getLogger(__name__).warning("===== Logging initialised with minimal fallback =====")

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Console-only logging used when no usable config is available."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {'format': _FORMAT},
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }
    logging.config.dictConfig(minimal_config)


def _apply_debug_overrides() -> None:
    """Set DEBUG on every logger listed in ``IDML_TOOLKIT_DEBUG_MODULES``.

    Example: ``IDML_TOOLKIT_DEBUG_MODULES=idml_toolkit.core.loader,idml_toolkit.core.archive``
    """
    raw = os.environ.get(DEBUG_MODULES_ENV, '').strip()
    targets = [m.strip() for m in raw.split(',') if m.strip()]
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        if not any(h.level <= logging.DEBUG for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(handler)
        logger.info("Debug override active for logger '%s'", name)
