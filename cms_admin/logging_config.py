from __future__ import annotations

"""Central logging configuration for the CMS admin core.

Import and call :func:`setup_logging` at application start-up. The layout
comes from the ``logging`` config section (``config/logging.yml``); its
``reorder_debug_loggers`` list names the loggers that
``CMS_ADMIN_DEBUG_REORDER`` switches to DEBUG.
"""

import logging
import logging.config
import os
from typing import Any, Dict, List

from cms_admin.config import ConfigManager

__all__ = ["setup_logging"]

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("CMS_ADMIN_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    section = ConfigManager().get_logging_config()
    if not isinstance(section, dict):
        section = {}
    # Copy so the cached section keeps its extra keys for the next call
    logging_config: Dict[str, Any] = dict(section)
    reorder_loggers = list(logging_config.pop("reorder_debug_loggers", None) or [])

    if logging_config.get("version"):
        handlers = logging_config.get("handlers") or {}
        if "file" in handlers:
            handlers["file"] = dict(handlers["file"], filename=log_file)
            logging_config["handlers"] = dict(handlers)
        try:
            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            # dictConfig reports a bad layout through these
            print(f"Error loading logging config: {exc}")
            _setup_minimal_logging(reorder_loggers)
    else:
        _setup_minimal_logging(reorder_loggers)

    _apply_debug_overrides(reorder_loggers)


def _setup_minimal_logging(reorder_loggers: List[str]) -> None:
    """Console-only logging used when the config section is missing or broken."""
    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {'simple': {'format': _FORMAT}},
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {'level': 'INFO', 'handlers': ['console']},
        # Keep the reorder loggers addressable so the env switch still works
        'loggers': {
            name: {'handlers': ['console'], 'level': 'INFO', 'propagate': False}
            for name in reorder_loggers
        },
    })
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides(reorder_loggers: List[str]) -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - CMS_ADMIN_DEBUG_REORDER=true  -> DEBUG for ``reorder_loggers``
    - CMS_ADMIN_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_reorder = os.environ.get('CMS_ADMIN_DEBUG_REORDER', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('CMS_ADMIN_DEBUG_MODULES', '').strip()
    targets = list(reorder_loggers) if debug_reorder else []
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])

    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Handlers from the config stop at INFO on the console; add one that emits DEBUG
        if not any(h.level <= logging.DEBUG for h in logger.handlers):
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
