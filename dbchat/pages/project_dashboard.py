from typing import Optional, Set

from rich import box
from rich.columns import Columns
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dbchat.core.models import DatabaseSchema, Project, ProjectSummary
from dbchat.pages.common import connect, disconnect, load_permission, load_project, logout
from dbchat.ui.components import (
    format_date,
    mask_connection_string,
    render_permissions,
    render_project_navigation,
    render_schema,
)
from dbchat.ui.knowledge import KnowledgeManager
from dbchat.ui.router import AppContext

COMMANDS = (
    "[dim]chat · settings · connect · disconnect · info · schema · expand <table> · "
    "knowledge · refresh · back · logout[/dim]"
)


def render_summary(project: Project, summary: Optional[ProjectSummary]) -> Columns:
    tables = summary.table_count if summary else 0
    queries = summary.total_queries if summary else 0
    cards = [
        Panel(f"[bold]{tables}[/bold]", title="Tables", border_style="cyan", width=22),
        Panel(f"[bold]{queries}[/bold]", title="Total queries", border_style="cyan", width=22),
        Panel(f"[bold]{project.database_type}[/bold]", title="Database", border_style="cyan", width=22),
    ]
    return Columns(cards)


def render_details(project: Project) -> Table:
    table = Table(box=box.SIMPLE, show_header=False, title="Connection")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Provider", escape(project.provider or "-"))
    table.add_row("Connection string", mask_connection_string(project.connection_string))
    table.add_row("Created", format_date(project.created_at))
    if project.description:
        table.add_row("Description", escape(project.description))
    return table


def render_recent_queries(summary: Optional[ProjectSummary], limit: int):
    if summary is None or not summary.recent_queries:
        return "[dim]No queries yet. Ask something in the chat to get started.[/dim]"
    table = Table(title="Recent queries", box=box.ROUNDED, expand=True)
    table.add_column("Status", width=8)
    table.add_column("Query", overflow="fold")
    table.add_column("When", style="green")
    for query in summary.recent_queries[:limit]:
        status = "[green]✓[/green]" if query.status == "success" else "[red]✗[/red]"
        table.add_row(status, escape(query.query), format_date(query.created_at, with_time=True))
    return table


def project_dashboard_screen(ctx: AppContext, project_id: int) -> Optional[str]:
    project = load_project(ctx, project_id)
    is_connected = connect(ctx, project.id)
    expanded: Optional[Set[str]] = None

    def load():
        summary_response = ctx.api.get_project_summary(project.id)
        schema_response = ctx.api.get_project_schema(project.id)
        summary = summary_response.data if summary_response.success else None
        schema = schema_response.data if schema_response.success else None
        if not schema_response.success:
            ctx.toast.error(schema_response.error or "Failed to load schema")
        return summary, schema, load_permission(ctx, project)

    def draw(summary: Optional[ProjectSummary], schema: Optional[DatabaseSchema], permission):
        ctx.console.print(render_project_navigation(project, is_connected, active="dashboard"))
        ctx.console.print(render_summary(project, summary))
        ctx.console.print(render_details(project))
        ctx.console.print(render_recent_queries(summary, ctx.settings.RECENT_QUERY_LIMIT))
        if permission is not None:
            ctx.console.print(render_permissions(permission))
        if schema is not None:
            ctx.console.print(render_schema(schema, expanded))
        ctx.console.print(COMMANDS)

    with ctx.busy("Loading project overview..."):
        summary, schema, permission = load()
    draw(summary, schema, permission)

    while True:
        command = ctx.prompter.ask(project.name, default="refresh")
        verb, _, arg = command.partition(" ")
        verb = verb.lower()

        if verb == "chat":
            return f"/projects/{project.id}/chat"
        if verb == "settings":
            return f"/projects/{project.id}/settings"
        if verb in ("back", "dashboard"):
            return "/dashboard"
        if verb == "logout":
            return logout(ctx)
        if verb == "connect":
            is_connected = connect(ctx, project.id)
        elif verb == "disconnect":
            is_connected = disconnect(ctx, project.id)
        elif verb == "info":
            response = ctx.api.get_database_info(project.id)
            if response.success and response.data is not None:
                info = response.data
                state = "connected" if info.connected else "not connected"
                name = escape(info.database_name or project.name)
                kind = info.database_type or project.database_type
                ctx.console.print(f"[bold]{name}[/bold] ({kind}) · {state} · {len(info.tables)} tables")
            else:
                ctx.toast.error(response.error or "Failed to load database info")
        elif verb == "schema":
            response = ctx.api.get_project_schema(project.id)
            if response.success and response.data is not None:
                schema = response.data
                ctx.console.print(render_schema(schema, expanded))
            else:
                ctx.toast.error(response.error or "Failed to load schema")
        elif verb == "expand" and arg:
            if schema is None:
                ctx.toast.error("Schema is not loaded")
                continue
            current = expanded if expanded is not None else {t.name for t in schema.tables[:1]}
            # toggles, like clicking a table header
            expanded = current ^ {arg.strip()}
            ctx.console.print(render_schema(schema, expanded))
        elif verb == "knowledge":
            KnowledgeManager(ctx, project.id).run()
        elif verb == "refresh":
            with ctx.busy("Refreshing..."):
                summary, schema, permission = load()
            draw(summary, schema, permission)
        else:
            ctx.console.print(COMMANDS)
