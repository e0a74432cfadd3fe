"""Logging setup for the paper scalper."""

import logging

from rich.logging import RichHandler


def setup_logging(level: str = "INFO") -> None:
    """Route all log records through a rich console handler.

    Args:
        level: Root log level name.
    """
    handler = RichHandler(rich_tracebacks=True, show_path=False, log_time_format="[%X]")
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
