"""Logging setup for the xlquery package."""

import logging

LOGGER_NAME = "xlquery"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure and return the package root logger.

    Safe to call more than once: the handler is installed once and later
    calls only update the level.

    Args:
        level: Level name, one of DEBUG/INFO/WARNING/ERROR/CRITICAL.

    Returns:
        The configured "xlquery" logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(numeric_level)

    logger.propagate = False

    return logger


def summarize(value: object, max_len: int = 200) -> str:
    """Render a value as a single log-friendly line, truncated to max_len."""
    compact = " ".join(str(value).split())
    if len(compact) <= max_len:
        return compact
    return f"{compact[: max_len - 3]}..."
