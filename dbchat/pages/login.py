import logging
from typing import Optional

from rich.panel import Panel

from dbchat.ui.router import AppContext

logger = logging.getLogger(__name__)


def login_screen(ctx: AppContext) -> Optional[str]:
    if ctx.session.is_authenticated():
        return "/dashboard"

    ctx.console.print(Panel(
        "Sign in to your account to continue\n[dim]Leave the email empty to create an account instead.[/dim]",
        title="[bold]AI Database Assistant[/bold]",
        border_style="blue",
    ))
    email = ctx.prompter.ask("Email")
    if not email:
        return "/signup"
    password = ctx.prompter.ask("Password", password=True)

    with ctx.busy("Signing in..."):
        response = ctx.api.login(email, password)

    if response.success and response.data is not None:
        ctx.session.set_token(response.data.token)
        logger.info(f"Logged in as {email}")
        ctx.toast.success("Logged in successfully.")
        return "/dashboard"

    ctx.toast.error(response.error or "Login failed. Please try again.")
    return "/login"
