"""
Chat screen: talk to the assistant about a project's database and run the
SQL it proposes.

Every statement goes through `can_execute` against the project's permission
record, and then through an explicit confirmation, before `execute-sql` is
called.
"""
import logging
from typing import List, Optional

from rich.panel import Panel
from rich.text import Text

from dbchat.core.models import Permission, Project
from dbchat.core.sql_security import can_execute
from dbchat.pages.common import connect, disconnect, load_permission, load_project, logout
from dbchat.ui.components import (
    ChatEntry,
    confirm_sql,
    render_chat_message,
    render_project_navigation,
    render_query_result,
    render_schema,
    render_sql_executor,
    result_summary_text,
)
from dbchat.ui.router import AppContext

logger = logging.getLogger(__name__)

HELP = """[bold]Commands[/bold]
  [cyan]<text>[/cyan]          ask the assistant
  [cyan]/run \\[n][/cyan]        execute the SQL of the latest (or #n) answer
  [cyan]/validate \\[n][/cyan]   check that SQL without running it
  [cyan]/connect[/cyan]        connect to the database
  [cyan]/disconnect[/cyan]     disconnect from the database
  [cyan]/schema[/cyan]         show the database schema
  [cyan]/history[/cyan]        redraw the conversation
  [cyan]/settings[/cyan]       open the project settings
  [cyan]/back[/cyan]           back to the project dashboard
  [cyan]/logout[/cyan]         sign out
  [cyan]/help[/cyan]           show this help"""

WELCOME = (
    "Ask questions about your database in plain language.\n"
    "[dim]e.g. \"How many users signed up last month?\" · type /help for commands[/dim]"
)


class ChatSession:
    """State of one visit to the chat screen."""

    def __init__(self, ctx: AppContext, project: Project, permission: Optional[Permission]):
        self.ctx = ctx
        self.project = project
        self.permission = permission
        self.entries: List[ChatEntry] = []
        self.is_connected = False

    # --- transcript ---
    def sql_entries(self) -> List[ChatEntry]:
        return [e for e in self.entries if not e.is_user and e.sql]

    def show(self, entry: ChatEntry):
        index = next((i for i, e in enumerate(self.sql_entries(), 1) if e is entry), None)
        self.ctx.console.print(render_chat_message(entry, index))

    def add(self, entry: ChatEntry):
        self.entries.append(entry)
        self.show(entry)

    def load_history(self):
        response = self.ctx.api.get_chat_history(self.project.id)
        if not response.success:
            self.ctx.toast.error(response.error or "Failed to load chat history")
            return
        self.entries = [ChatEntry.from_message(m) for m in response.data or []]

    def redraw(self):
        self.ctx.console.print(render_project_navigation(self.project, self.is_connected, active="chat"))
        if not self.entries:
            self.ctx.console.print(Panel(WELCOME, title="Start a conversation", border_style="green"))
        for entry in self.entries:
            self.show(entry)

    # --- actions ---
    def send(self, content: str):
        self.entries.append(ChatEntry(id=f"local-{len(self.entries)}", text=content, is_user=True))
        with self.ctx.busy("Thinking..."):
            response = self.ctx.api.send_chat_message(self.project.id, content)

        if response.success and response.data is not None:
            entry = ChatEntry.from_message(response.data.ai_message)
            # The top-level ai_response is the authoritative one
            entry.text = response.data.ai_response.content or entry.text
            entry.sql = response.data.ai_response.query or entry.sql
            self.add(entry)
            return

        error = response.error or "Failed to send message"
        self.ctx.toast.error(error)
        self.add(ChatEntry(id=f"local-{len(self.entries)}", text=f"❌ {error}", is_user=False))

    def pick_sql(self, arg: str) -> Optional[str]:
        candidates = self.sql_entries()
        if not candidates:
            self.ctx.toast.info("No SQL to run yet. Ask a question first.")
            return None
        if not arg:
            return candidates[-1].sql
        if not arg.isdigit() or not 1 <= int(arg) <= len(candidates):
            self.ctx.toast.error(f"No SQL query #{arg}")
            return None
        return candidates[int(arg) - 1].sql

    def run_sql(self, sql: str) -> bool:
        """Permission gate, confirmation, then execution. Returns True once the query was sent."""
        check = can_execute(sql, self.permission, fail_closed=self.ctx.settings.PERMISSION_FAIL_CLOSED)
        self.ctx.console.print(render_sql_executor(sql, check, self.project.database_type))
        if not check.allowed:
            logger.info(f"Blocked query on project {self.project.id}: {check.reason}")
            self.ctx.toast.error(check.reason or "Operation not allowed")
            return False

        confirmed = confirm_sql(
            self.ctx.prompter,
            self.ctx.console,
            title="Execute SQL Query",
            description=f"Are you sure you want to run this query on {self.project.name}?",
            sql=sql,
        )
        if not confirmed:
            self.ctx.toast.info("Execution cancelled")
            return False

        with self.ctx.busy("Executing query..."):
            response = self.ctx.api.execute_sql(self.project.id, sql)

        if response.success and response.data is not None:
            self.ctx.console.print(render_query_result(response.data, self.ctx.settings.ROW_DISPLAY_LIMIT))
            self.entries.append(ChatEntry(
                id=f"local-{len(self.entries)}",
                text=result_summary_text(response.data),
                is_user=False,
            ))
            self.ctx.toast.success("Query executed successfully")
            return True

        error = response.error or "Failed to execute query"
        self.ctx.console.print(Panel(Text(error, style="red"), title="Error", border_style="red"))
        self.entries.append(ChatEntry(id=f"local-{len(self.entries)}", text=f"❌ Error: {error}", is_user=False))
        self.ctx.toast.error(error)
        return True

    def validate_sql(self, sql: str):
        with self.ctx.busy("Validating query..."):
            response = self.ctx.api.validate_sql(self.project.id, sql)
        if not response.success or response.data is None:
            self.ctx.toast.error(response.error or "Failed to validate query")
            return
        result = response.data
        details = f" [{result.query_type}]" if result.query_type else ""
        if result.valid:
            self.ctx.toast.success(f"Query is valid{details}. {result.message}".strip())
        else:
            self.ctx.toast.error(f"Query is invalid{details}. {result.message}".strip())

    def show_schema(self):
        response = self.ctx.api.get_project_schema(self.project.id)
        if response.success and response.data is not None:
            self.ctx.console.print(render_schema(response.data))
        else:
            self.ctx.toast.error(response.error or "Failed to load schema")

    def handle_command(self, line: str) -> Optional[str]:
        """Returns a path when the command leaves the screen."""
        command, _, arg = line.partition(" ")
        command, arg = command.lower(), arg.strip()

        if command == "/run":
            sql = self.pick_sql(arg)
            if sql:
                self.run_sql(sql)
        elif command == "/validate":
            sql = self.pick_sql(arg)
            if sql:
                self.validate_sql(sql)
        elif command == "/connect":
            self.is_connected = connect(self.ctx, self.project.id)
        elif command == "/disconnect":
            self.is_connected = disconnect(self.ctx, self.project.id)
        elif command == "/schema":
            self.show_schema()
        elif command == "/back":
            return f"/projects/{self.project.id}/dashboard"
        elif command == "/settings":
            return f"/projects/{self.project.id}/settings"
        elif command == "/logout":
            return logout(self.ctx)
        elif command == "/history":
            self.redraw()
        else:
            self.ctx.console.print(HELP)
        return None


def project_chat_screen(ctx: AppContext, project_id: int) -> Optional[str]:
    project = load_project(ctx, project_id)
    chat = ChatSession(ctx, project, load_permission(ctx, project))
    with ctx.busy("Loading conversation..."):
        chat.load_history()
    chat.is_connected = connect(ctx, project.id)
    chat.redraw()

    while True:
        try:
            line = ctx.prompter.ask("You")
        except KeyboardInterrupt:
            return f"/projects/{project.id}/dashboard"
        if not line:
            continue
        if line.startswith("/"):
            destination = chat.handle_command(line)
            if destination:
                return destination
        else:
            chat.send(line)
