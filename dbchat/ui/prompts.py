from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt


class Prompter:
    """
    Reads user input for the screens.

    Interactive sessions go through rich.prompt. When `stream` is set
    (e.g. `dbchat --script commands.txt`) answers are read line by line from
    it instead, and running out of lines raises EOFError like a closed
    terminal would.
    """

    def __init__(self, console: Console, stream: Optional[TextIO] = None):
        self.console = console
        self.stream = stream

    def _read_line(self, label: str) -> str:
        line = self.console.input(f"{escape(label)}: ", stream=self.stream)
        if not line:
            raise EOFError
        return line.strip()

    def ask(self, label: str, default: Optional[str] = None, password: bool = False) -> str:
        if self.stream is not None:
            value = self._read_line(label)
            return value if value else (default or "")

        kwargs = {}
        if default is not None:
            kwargs["default"] = default
        return Prompt.ask(escape(label), console=self.console, password=password, **kwargs).strip()

    def confirm(self, label: str, default: bool = False) -> bool:
        if self.stream is not None:
            value = self._read_line(f"{label} [y/n]").lower()
            if not value:
                return default
            return value in ("y", "yes")
        return Confirm.ask(escape(label), console=self.console, default=default)
