import logging

from rich.logging import RichHandler

from utils.config import get_settings


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


def _build_handler(log_file) -> logging.Handler:
    if log_file:
        # the TUI owns the terminal, so file logging skips rich rendering
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(
            CenteredFormatter("%(asctime)s %(levelname)-8s [%(name)s]  %(message)s")
        )
        return handler

    handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%X]",
    )
    handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
    return handler


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger for ``name`` wired to a RichHandler, or to ``LOG_FILE``
    when one is configured.
    """
    if name is None:
        name = "marketplace"
    settings = get_settings()
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = _build_handler(settings.log_file)
        handler.setLevel(log_level)
        logger.addHandler(handler)
        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized.")

    return logger
