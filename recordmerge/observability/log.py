"""Structured logging initialisation utilities."""
from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger that emits through the stdlib logger ``name``.

    The processor chain is looked up on every call rather than fixed here, so
    whatever :func:`configure_logging` (or ``structlog.configure``) installs
    applies to loggers created at import time. Until then the stdlib level
    decides, and the library stays quiet.
    """
    return structlog.wrap_logger(logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger)


def _processors() -> List[Any]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(config_path: Optional[Path] = None) -> None:
    """Configure stdlib handlers from YAML and render structlog events as JSON lines.

    Events reach the stdlib handlers already rendered, with their fields
    (``path``, ``reason``, ...) inside the JSON message, so a plain
    ``%(message)s`` formatter shows everything. Without a config file a basic
    stderr handler at INFO is installed instead.
    """
    if config_path is None or not config_path.exists():
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    else:
        with config_path.open("r", encoding="utf-8") as handle:
            config: Dict[str, Any] = yaml.safe_load(handle)
        logging.config.dictConfig(config)
    structlog.configure(
        processors=_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
