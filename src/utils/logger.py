import logging
import os

from rich.logging import RichHandler
from textual.logging import TextualHandler

# "rich" writes to the terminal; "textual" forwards to the textual devtools
# console, which is the only safe sink once the app owns the screen
_handler_kind = "rich"
_loggers: dict[str, logging.Logger] = {}


class CenteredFormatter(logging.Formatter):
    longest_name_length = 12  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=12):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


def _log_level() -> int:
    return logging.DEBUG if os.getenv("DEBUG") else logging.INFO


def _make_handler() -> logging.Handler:
    if _handler_kind == "textual":
        handler = TextualHandler()
    else:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
    handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
    handler.setLevel(_log_level())
    return handler


def use_textual_handler() -> None:
    """
    Route every logger created so far (and later) to the textual devtools.
    Called by the app right before it takes over the terminal.
    """
    global _handler_kind
    _handler_kind = "textual"
    for logger in _loggers.values():
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.addHandler(_make_handler())


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger named after the calling module.
    """
    if name is None:
        name = "storefront"
    logger = logging.getLogger(name)
    logger.setLevel(_log_level())

    if not logger.handlers:
        logger.addHandler(_make_handler())
        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with {_handler_kind} handler.")

    _loggers[name] = logger
    return logger
