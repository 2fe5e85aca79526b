import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Shared console instance to keep log lines and screen output on one stream
console = Console()


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None):
    """
    Configure global logging with RichHandler, optionally mirrored to a file.
    """
    handlers = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=True,
            show_path=False
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True
    )

    # Request lines are logged by ApiClient itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
