"""Logging for typepack components.

All loggers hang off the ``typepack`` root, so an application can tune
the whole package or a single component such as ``typepack.service``.
Library code only creates loggers; handlers are installed on request.

Example:
    >>> from typepack.logging import configure_logging, get_logger
    >>> configure_logging(level=logging.DEBUG)
    >>> get_logger("service").debug("Type code computed")
"""

import logging
from typing import Optional


TYPEPACK_ROOT_LOGGER = "typepack"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str = "") -> logging.Logger:
    """Get the logger of a typepack component.

    Args:
        name: Component name such as 'service'. Empty for the root logger.
    """
    if not name:
        return logging.getLogger(TYPEPACK_ROOT_LOGGER)
    return logging.getLogger(f"{TYPEPACK_ROOT_LOGGER}.{name}")


def configure_logging(
    level: int = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Set the root typepack level and install a handler.

    A handler is added only when the root logger has none yet, so calling
    this twice does not duplicate output.

    Args:
        level: Level for the root logger and the new handler.
        format_string: Format of the new handler.
        handler: Handler to install. Defaults to a stderr StreamHandler.

    Returns:
        The root typepack logger.
    """
    logger = get_logger()
    logger.setLevel(level)
    if not logger.handlers:
        handler = handler if handler is not None else logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(handler)
    return logger


def set_level(level: int, component: str = "") -> None:
    """Set the level of one component, or of the root logger."""
    get_logger(component).setLevel(level)
