import logging

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger("dbchat.toast")


class Toaster:
    """Short one-line notifications, mirrored to the log."""

    def __init__(self, console: Console):
        self.console = console

    def success(self, message: str):
        logger.info(message)
        self.console.print(f"[bold green]✅ {escape(message)}[/bold green]")

    def error(self, message: str):
        logger.warning(message)
        self.console.print(f"[bold red]❌ {escape(message)}[/bold red]")

    def info(self, message: str):
        logger.info(message)
        self.console.print(f"[cyan]ℹ {escape(message)}[/cyan]")
