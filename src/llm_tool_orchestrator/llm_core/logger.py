"""Logging utilities for the tool orchestration library."""

import logging
import sys

_LOGGER_NAME = "llm_tool_orchestrator"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance for the library.

    Module loggers are created with ``get_logger(__name__)``. Names that already
    live under the library namespace are used as-is, anything else is nested
    below the library root logger.

    Args:
        name: Optional sub-logger name. If None, returns the root library logger.

    Returns:
        The requested logger.
    """
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    if name == _LOGGER_NAME or name.startswith(f"{_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def setup_logging(
    level: int | str = logging.INFO, format_str: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
) -> None:
    """Attach a stdout handler to the library root logger.

    Meant for applications and example scripts. Library modules only log
    through ``get_logger`` and never configure handlers themselves.

    Args:
        level: Logging level, either numeric or a name such as ``"DEBUG"``.
        format_str: Log format string.
    """
    logger = logging.getLogger(_LOGGER_NAME)

    # Avoid adding multiple handlers if called multiple times
    if any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(format_str)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)


# Set default NullHandler to avoid "No handler found" warnings
logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
