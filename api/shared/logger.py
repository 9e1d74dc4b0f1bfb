"""
Logging setup for the performance graph viewer backend.

``create_app`` calls :func:`setup_logging` with ``AppConfig.log_level``. The
first call installs the stdout handler; later calls only change the level, so
every app built from an explicit config logs at the level that config asks for.

Usage:
    from api.shared.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Serving performance data from %s", path)
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# httpx logs every request at INFO; the viewer's refresh loop would flood the output
_CHATTY_LOGGERS = ("httpx", "httpcore")

_handler_installed = False


def resolve_level(level) -> int:
    """Turn ``"debug"`` / ``"INFO"`` / ``10`` into a logging level, INFO if unknown."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level="INFO") -> int:
    """Configure root logging and return the level that was applied."""
    global _handler_installed
    numeric = resolve_level(level)

    if not _handler_installed:
        logging.basicConfig(
            level=numeric,
            format=LOG_FORMAT,
            datefmt="%H:%M:%S",
            stream=sys.stdout,
            force=True,
        )
        _handler_installed = True
    else:
        logging.getLogger().setLevel(numeric)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))
    return numeric


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
