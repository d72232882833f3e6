"""
Thane logging setup.

Library modules log through module loggers under the "thane" namespace
(dispatch transitions, commits, wrapper subprocess runs at DEBUG; recovered
faults at INFO). Nothing is configured on import; applications opt in with
configure(), which attaches a rich handler writing to standard error.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

from . import config
from .utils import Unset, coalesce

LOGGER_NAME = "thane"


def configure(level=Unset, /, *, console=Unset):
    """
    attach a RichHandler to the "thane" logger and set its level.

    - level: a logging level (int or name); defaults to THANE_LOG_LEVEL, then WARNING.
    - console: rich Console for the handler (default: standard error).

    Calling configure() again replaces the handler it installed before.
    Returns the configured logger.
    """
    level = coalesce(level, config.log_level())
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError("configure() level must be a valid logging level name")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_thane", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True) if console is Unset else console,
        show_path=False,
        rich_tracebacks=True,
    )
    handler._thane = True
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = (
    "LOGGER_NAME",
    "configure",
)
