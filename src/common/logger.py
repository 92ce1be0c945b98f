"""Rich-backed logging for thesis-lint.

Module loggers write through rich so diagnostics and run summaries can use
markup such as ``[green]✓[/green]``. User-facing one-liners that should not
carry a logger prefix go through ``success``, ``notice`` and ``error``.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Parsing workspace...")
    logger.warning("Snapshot could not be written")
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

console = Console()
error_console = Console(stderr=True)

FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        tracebacks_show_locals=True,
        markup=True,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def _env_level(default: str) -> str:
    return os.getenv("LOG_LEVEL", default).upper()


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Return the named logger, attaching a rich handler on first use.

    Args:
        name: Logger name, usually the module's ``__name__``
        level: Explicit level; defaults to LOG_LEVEL or INFO
        show_time: Prefix records with a timestamp
        show_path: Suffix records with the emitting source line

    Returns:
        The logger. Records also propagate to the root logger so pytest's
        caplog sees them.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level.upper() if level else _env_level("INFO"))
    logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))
    logger.propagate = True
    return logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure the root logger once from the CLI entry point.

    Args:
        level: Root level unless LOG_LEVEL overrides it
        log_file: Also append full records to this file
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_env_level(level))
    root_logger.handlers.clear()

    root_logger.addHandler(_rich_handler())

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt=FILE_DATE_FORMAT))
        root_logger.addHandler(file_handler)


def success(message: str) -> None:
    """Print ``✓ message`` in green.

    Example:
        >>> success("Analysis complete (full)")
        ✓ Analysis complete (full)
    """
    console.print(f"[green]✓[/green] {message}")


def notice(message: str) -> None:
    """Print ``⚠ message``, e.g. for runs that did not complete."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print ``✗ message`` to stderr."""
    error_console.print(f"[red]✗[/red] {message}")
