import logging
import re
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from rich.console import Console

from dbchat.api.client import ApiClient
from dbchat.core.config import Settings, settings as default_settings
from dbchat.core.session import SessionStore
from dbchat.ui.prompts import Prompter
from dbchat.ui.toast import Toaster

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/"


class Redirect(Exception):
    """Raised by a screen to leave it for another route."""

    def __init__(self, path: str):
        super().__init__(path)
        self.path = path


@dataclass
class AppContext:
    """Everything a screen needs; passed explicitly instead of module globals."""
    api: ApiClient
    session: SessionStore
    console: Console
    prompter: Prompter
    toast: Toaster
    settings: Settings = field(default_factory=lambda: default_settings)

    def busy(self, message: str):
        # Spinners only make sense on a real terminal
        if self.console.is_terminal:
            return self.console.status(f"[bold green]{message}[/bold green]")
        return nullcontext()


Screen = Callable[..., Optional[str]]


@dataclass
class Route:
    pattern: str
    regex: re.Pattern
    screen: Screen
    protected: bool


def _compile(pattern: str) -> re.Pattern:
    # "/projects/{project_id}/chat" -> named integer group
    regex = re.sub(r"\{(\w+)\}", r"(?P<\1>\\d+)", pattern.rstrip("/") or "/")
    return re.compile(f"^{regex}/?$")


class Router:
    """
    Maps route paths to screens. A screen returns the next path (or None to
    quit); protected screens are never entered without a stored token.
    """

    def __init__(self):
        self.routes: List[Route] = []

    def add(self, pattern: str, screen: Screen, protected: bool = True):
        self.routes.append(Route(pattern, _compile(pattern), screen, protected))

    def resolve(self, path: str) -> Optional[Tuple[Route, Dict[str, Any]]]:
        for route in self.routes:
            match = route.regex.match(path)
            if match:
                params = {k: int(v) for k, v in match.groupdict().items()}
                return route, params
        return None

    def dispatch(self, ctx: AppContext, path: str) -> Optional[str]:
        resolved = self.resolve(path)
        if resolved is None:
            ctx.toast.error(f"Unknown page: {path}")
            return HOME_PATH if path != HOME_PATH else None

        route, params = resolved
        if route.protected and not ctx.session.is_authenticated():
            logger.info(f"{path} requires authentication, redirecting to {LOGIN_PATH}")
            return LOGIN_PATH

        logger.debug(f"Entering {path}")
        try:
            return route.screen(ctx, **params)
        except Redirect as r:
            return r.path

    def run(self, ctx: AppContext, start: str = HOME_PATH):
        path: Optional[str] = start
        while path:
            try:
                path = self.dispatch(ctx, path)
            except (EOFError, KeyboardInterrupt):
                ctx.console.print("\n[bold yellow]Goodbye![/bold yellow]")
                break
