import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", console: Console | None = None) -> logging.Handler:
    """Route torrentlite's loggers to a RichHandler on stderr.

    Standard output is left alone so command results can be piped.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger("torrentlite")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    return handler
