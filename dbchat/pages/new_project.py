import logging
from typing import Dict, Optional

from rich.panel import Panel

from dbchat.core.connection import check_connection_string
from dbchat.ui.router import AppContext

logger = logging.getLogger(__name__)

DATABASE_TYPES = ("postgresql", "mysql")

PERMISSION_PROMPTS = (
    ("allow_read", "Allow read queries (SELECT)"),
    ("allow_write", "Allow write queries (INSERT, UPDATE)"),
    ("allow_delete", "Allow delete queries (DELETE, TRUNCATE)"),
    ("allow_ddl", "Allow schema changes (CREATE, ALTER, DROP)"),
)


def ask_database_type(ctx: AppContext, default: str = "postgresql") -> str:
    while True:
        value = ctx.prompter.ask(f"Database type ({'/'.join(DATABASE_TYPES)})", default=default).lower()
        if value in DATABASE_TYPES:
            return value
        ctx.toast.error(f"Unsupported database type: {value}")


def ask_permissions(ctx: AppContext, current: Optional[Dict[str, bool]] = None) -> Dict[str, bool]:
    current = current or {}
    return {
        key: ctx.prompter.confirm(label, default=current.get(key, True))
        for key, label in PERMISSION_PROMPTS
    }


def new_project_screen(ctx: AppContext) -> Optional[str]:
    ctx.console.print(Panel(
        "Connect a database and let the assistant answer questions about it.\n"
        "[dim]Fields marked * are required.[/dim]",
        title="[bold]New project[/bold]",
        border_style="blue",
    ))
    name = ctx.prompter.ask("Project name *")
    description = ctx.prompter.ask("Description", default="")
    database_type = ask_database_type(ctx)
    provider = ctx.prompter.ask("Provider (e.g. AWS RDS, Supabase, local)", default="")
    connection_string = ctx.prompter.ask("Connection string *", password=True)
    permissions = ask_permissions(ctx)

    if ctx.prompter.confirm("Test connection string", default=True):
        check = check_connection_string(database_type, connection_string)
        if check.ok:
            ctx.toast.success(check.message)
        else:
            ctx.toast.error(check.message)

    if not name or not connection_string:
        ctx.toast.error("Please fill in all required fields")
        return "/projects/new" if ctx.prompter.confirm("Try again", default=True) else "/dashboard"

    with ctx.busy("Creating project..."):
        response = ctx.api.create_project(
            name=name,
            description=description,
            database_type=database_type,
            provider=provider,
            connection_string=connection_string,
            permissions=permissions,
        )

    if response.success and response.data is not None:
        logger.info(f"Created project {response.data.id} ({database_type})")
        ctx.toast.success("Project created successfully")
        return f"/projects/{response.data.id}/dashboard"

    ctx.toast.error(response.error or "Failed to create project")
    return "/dashboard"
