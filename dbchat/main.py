import argparse
import logging
from typing import List, Optional

from dbchat.api.client import ApiClient
from dbchat.core.config import settings
from dbchat.core.logging import console, setup_logging
from dbchat.core.session import SessionStore
from dbchat.pages.dashboard import dashboard_screen
from dbchat.pages.home import home_screen
from dbchat.pages.login import login_screen
from dbchat.pages.new_project import new_project_screen
from dbchat.pages.project_chat import project_chat_screen
from dbchat.pages.project_dashboard import project_dashboard_screen
from dbchat.pages.project_settings import project_settings_screen
from dbchat.pages.signup import signup_screen
from dbchat.ui.prompts import Prompter
from dbchat.ui.router import AppContext, Router
from dbchat.ui.toast import Toaster

logger = logging.getLogger(__name__)


def build_router() -> Router:
    router = Router()
    router.add("/", home_screen, protected=False)
    router.add("/login", login_screen, protected=False)
    router.add("/signup", signup_screen, protected=False)
    router.add("/dashboard", dashboard_screen)
    router.add("/projects/new", new_project_screen)
    router.add("/projects/{project_id}/dashboard", project_dashboard_screen)
    router.add("/projects/{project_id}/chat", project_chat_screen)
    router.add("/projects/{project_id}/settings", project_settings_screen)
    return router


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dbchat", description="Chat with your databases from the terminal")
    parser.add_argument("path", nargs="?", default="/", help="Page to open, e.g. /dashboard or /projects/3/chat")
    parser.add_argument("--api-url", default=settings.API_URL, help="Backend base URL")
    parser.add_argument("--session-file", default=settings.SESSION_FILE, help="Where the auth token is kept")
    parser.add_argument("--script", default=None, help="Read answers to prompts from this file")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG, INFO, WARNING or ERROR")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    setup_logging(args.log_level, settings.LOG_FILE)

    session = SessionStore(args.session_file)
    api = ApiClient(session, base_url=args.api_url)
    script = open(args.script, "r", encoding="utf-8") if args.script else None

    ctx = AppContext(
        api=api,
        session=session,
        console=console,
        prompter=Prompter(console, stream=script),
        toast=Toaster(console),
        settings=settings,
    )
    logger.info(f"Backend: {args.api_url}")
    try:
        build_router().run(ctx, args.path)
    finally:
        api.close()
        if script is not None:
            script.close()


if __name__ == "__main__":
    main()
