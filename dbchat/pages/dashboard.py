from typing import Optional

from rich.columns import Columns
from rich.panel import Panel

from dbchat.core.models import DashboardData
from dbchat.pages.common import logout
from dbchat.ui.components import render_projects
from dbchat.ui.router import AppContext

COMMANDS = "[dim]<id> open project · new · refresh · logout · quit[/dim]"


def _stat(label: str, value: int) -> Panel:
    return Panel(f"[bold]{value}[/bold]", title=label, border_style="cyan", width=24)


def dashboard_screen(ctx: AppContext) -> Optional[str]:
    with ctx.busy("Loading dashboard..."):
        stats_response = ctx.api.get_dashboard()
        projects_response = ctx.api.get_projects()

    stats = stats_response.data if stats_response.success and stats_response.data else DashboardData()
    if not stats_response.success:
        ctx.toast.error(stats_response.error or "Failed to load dashboard")

    projects = projects_response.data if projects_response.success and projects_response.data else []
    if not projects_response.success:
        ctx.toast.error(projects_response.error or "Failed to load projects")

    ctx.console.rule("[bold]AI Database Assistant · Dashboard[/bold]")
    ctx.console.print(Columns([
        _stat("Projects", stats.total_projects),
        _stat("Queries", stats.total_queries),
        _stat("Messages", stats.total_messages),
    ]))
    if projects:
        ctx.console.print(render_projects(projects))
    else:
        ctx.console.print("[dim]No projects yet. Type 'new' to create your first one.[/dim]")
    ctx.console.print(COMMANDS)

    while True:
        choice = ctx.prompter.ask("Dashboard", default="refresh").lower()
        if choice.isdigit():
            return f"/projects/{int(choice)}/dashboard"
        if choice == "new":
            return "/projects/new"
        if choice == "refresh":
            return "/dashboard"
        if choice == "logout":
            return logout(ctx)
        if choice in ("quit", "exit", "q"):
            return None
        ctx.console.print(COMMANDS)
