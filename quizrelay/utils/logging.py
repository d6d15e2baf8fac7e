"""
Logging for the quiz relay.

Console output goes through rich, with each line tagged by the component that
wrote it (SUBMIT, OBSERVE, DELIVER, CHANNEL). The log file gets the same lines
as plain text.
"""

import logging
from pathlib import Path
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.text import Text
from rich.theme import Theme

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "tag.submit": "magenta",
    "tag.observe": "blue",
    "tag.deliver": "green",
    "tag.channel": "cyan",
})

console = Console(theme=custom_theme)

logger = logging.getLogger("quizrelay")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _PlainTextFilter(logging.Filter):
    """Turns rich markup back into plain text for the file handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "markup", False):
            record.msg = Text.from_markup(record.getMessage()).plain
            record.args = ()
        return True


def setup_logging(log_file: str = "./quizrelay.log", level: int = logging.INFO) -> None:
    """
    Send the relay's log to the console (rich) and to a file.

    Args:
        log_file: Path to log file; parent directories are created
        level: Logging level for both handlers
    """
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.handlers = []
    logger.setLevel(level)

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.addFilter(_PlainTextFilter())
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug(f"Logging to {log_file}")


def log_session(tag: str, message: str, level: str = "info") -> None:
    """Log a message under a component tag, e.g. log_session("observe", "...")."""
    tag = tag.lower()
    logger.log(
        _LEVELS.get(level, logging.INFO),
        f"[tag.{tag}]{tag.upper()}[/] {escape(message)}",
        extra={"markup": True},
    )


def log_success(message: str) -> None:
    """Log a success message."""
    console.print(f"[success]✓[/] {escape(message)}")
    logger.info(f"✓ {message}")


def log_error(message: str, exc: Exception = None) -> None:
    """Log an error message, optionally with exception."""
    console.print(f"[error]✗[/] {escape(message)}")
    if exc:
        logger.error(f"✗ {message}: {exc}", exc_info=True)
    else:
        logger.error(f"✗ {message}")
