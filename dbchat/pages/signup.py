from typing import Optional

from rich.panel import Panel

from dbchat.ui.router import AppContext


def signup_screen(ctx: AppContext) -> Optional[str]:
    ctx.console.print(Panel(
        "Create an account to get started\n[dim]Leave the name empty to go back to sign in.[/dim]",
        title="[bold]Create account[/bold]",
        border_style="blue",
    ))
    name = ctx.prompter.ask("Full name")
    if not name:
        return "/login"
    email = ctx.prompter.ask("Email")
    password = ctx.prompter.ask("Password", password=True)
    confirm_password = ctx.prompter.ask("Confirm password", password=True)

    if password != confirm_password:
        ctx.toast.error("Passwords do not match")
        return "/signup"

    with ctx.busy("Creating account..."):
        response = ctx.api.signup(name, email, password)

    if response.success:
        ctx.toast.success("Account created successfully! Please log in.")
        return "/login"

    ctx.toast.error(response.error or "Signup failed. Please try again.")
    return "/signup"
