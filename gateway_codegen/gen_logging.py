"""
Loggers of the generation pipeline, all under the "gwgen" root.

The engine only creates loggers; handlers are installed by whoever embeds it,
through configure_gen_logging().
"""

import logging
import sys

ROOT_LOGGER = "gwgen"


def get_logger(name: str = None) -> logging.Logger:
    """Map a module __name__ to `gwgen.<last segment>`; None gives the root."""
    if name is None or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name.rsplit('.', 1)[-1]}")


def configure_gen_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    DEBUG with verbose (file writes, reflection requests), WARNING with quiet
    (dropped instances, hook failures), INFO otherwise (one line per
    generated instance). Repeated calls only change the level.
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_GenFormatter())
    root.addHandler(handler)


class _GenFormatter(logging.Formatter):
    """Bare message; warnings and errors get a level tag."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            message = f"[{record.levelname.lower()}] {message}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message
