"""Logging setup shared by the engine and the CLI."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace."""
    if name != "neurogait" and not name.startswith("neurogait."):
        name = f"neurogait.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO") -> None:
    """Install a rich handler on the package logger (once)."""
    global _configured
    package_logger = logging.getLogger("neurogait")
    package_logger.setLevel(level)

    if _configured:
        return

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger.addHandler(handler)
    _configured = True
