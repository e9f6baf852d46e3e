"""Root logger wiring for the CLI and API server."""

import logging

from rich.console import Console
from rich.logging import RichHandler

_FORMAT = "%(name)s: %(message)s"


def configure_logging(level: str = "info") -> None:
    """Send authscore logs to stderr through rich. Safe to call more than once."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("authscore")
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False
