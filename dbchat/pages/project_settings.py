import logging
from typing import Dict, Optional

from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dbchat.core.connection import check_connection_string
from dbchat.core.models import Permission, Project
from dbchat.pages.common import connect, disconnect, load_project, logout
from dbchat.pages.new_project import ask_permissions
from dbchat.ui.components import mask_connection_string, render_permissions, render_project_navigation
from dbchat.ui.knowledge import KnowledgeManager
from dbchat.ui.router import AppContext

logger = logging.getLogger(__name__)

COMMANDS = "[dim]edit · permissions · connect · disconnect · knowledge · delete · dashboard · chat · logout[/dim]"

PERMISSION_KEYS = ("allow_ddl", "allow_write", "allow_read", "allow_delete")


def fetch_permissions(ctx: AppContext, project: Project) -> Dict[str, bool]:
    """Current flags for the form; everything enabled when nothing is known."""
    response = ctx.api.get_project_permissions(project.id)
    if response.success and response.data is not None:
        source = response.data
    elif project.permission is not None:
        source = project.permission
    else:
        return {key: True for key in PERMISSION_KEYS}
    return {key: getattr(source, key) for key in PERMISSION_KEYS}


def render_settings(project: Project) -> Table:
    table = Table(title="Project settings", box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Name", escape(project.name))
    table.add_row("Description", escape(project.description or "-"))
    table.add_row("Database type", project.database_type)
    table.add_row("Provider", escape(project.provider or "-"))
    table.add_row("Connection string", mask_connection_string(project.connection_string))
    return table


class SettingsForm:
    def __init__(self, ctx: AppContext, project: Project):
        self.ctx = ctx
        self.project = project
        self.permissions = fetch_permissions(ctx, project)
        self.is_connected = ctx.session.get_connection_state(project.id)
        if not self.is_connected:
            self.is_connected = connect(ctx, project.id, quiet=True)

    def draw(self):
        self.ctx.console.print(render_project_navigation(self.project, self.is_connected, active="settings"))
        self.ctx.console.print(render_settings(self.project))
        self.ctx.console.print(render_permissions(Permission(**self.permissions)))
        self.ctx.console.print(COMMANDS)

    def save(self, **updates) -> bool:
        with self.ctx.busy("Saving changes..."):
            response = self.ctx.api.update_project(self.project.id, **updates)
        if response.success and response.data is not None:
            self.project = response.data
            self.ctx.toast.success("Project updated successfully")
            return True
        self.ctx.toast.error(response.error or "Failed to update project")
        return False

    def edit(self):
        name = self.ctx.prompter.ask("Project name", default=self.project.name)
        description = self.ctx.prompter.ask("Description", default=self.project.description)
        connection_string = self.ctx.prompter.ask(
            "Connection string (leave empty to keep the current one)", password=True
        )
        if not name:
            self.ctx.toast.error("Project name is required")
            return

        updates = {"name": name, "description": description}
        if connection_string:
            check = check_connection_string(self.project.database_type, connection_string)
            if not check.ok:
                self.ctx.toast.error(check.message)
                if not self.ctx.prompter.confirm("Save anyway", default=False):
                    return
            updates["connection_string"] = connection_string
        self.save(**updates)

    def edit_permissions(self):
        flags = ask_permissions(self.ctx, self.permissions)
        if self.save(**flags):
            self.permissions = flags

    def delete(self) -> bool:
        confirmed = self.ctx.prompter.confirm(
            f"Delete project '{self.project.name}'? This cannot be undone", default=False
        )
        if not confirmed:
            self.ctx.toast.info("Delete cancelled")
            return False
        with self.ctx.busy("Deleting project..."):
            response = self.ctx.api.delete_project(self.project.id)
        if response.success:
            logger.info(f"Deleted project {self.project.id}")
            self.ctx.session.clear_connection_state()
            self.ctx.toast.success("Project deleted successfully")
            return True
        self.ctx.toast.error(response.error or "Failed to delete project")
        return False


def project_settings_screen(ctx: AppContext, project_id: int) -> Optional[str]:
    form = SettingsForm(ctx, load_project(ctx, project_id))
    form.draw()

    while True:
        command = ctx.prompter.ask("Settings", default="dashboard").lower()
        if command == "dashboard":
            return f"/projects/{form.project.id}/dashboard"
        if command == "chat":
            return f"/projects/{form.project.id}/chat"
        if command == "logout":
            return logout(ctx)
        if command == "edit":
            form.edit()
        elif command == "permissions":
            form.edit_permissions()
        elif command == "connect":
            form.is_connected = connect(ctx, form.project.id)
        elif command == "disconnect":
            form.is_connected = disconnect(ctx, form.project.id)
        elif command == "knowledge":
            KnowledgeManager(ctx, form.project.id).run()
        elif command == "delete":
            if form.delete():
                return "/dashboard"
            continue
        else:
            ctx.console.print(Panel(COMMANDS, border_style="dim"))
            continue
        form.draw()
