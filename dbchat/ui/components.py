from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Set

from rich import box
from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from dbchat.core.config import settings
from dbchat.core.models import ChatMessage, DatabaseSchema, Permission, Project, QueryResult, TableInfo
from dbchat.core.sql_security import PermissionCheck, classify_query, format_sql
from dbchat.ui.prompts import Prompter

MASK = "•" * 16


@dataclass
class ChatEntry:
    """One bubble in the chat transcript."""
    id: str
    text: str
    is_user: bool
    sql: Optional[str] = None

    @classmethod
    def from_message(cls, message: ChatMessage) -> "ChatEntry":
        return cls(
            id=str(message.id),
            text=message.display_text,
            is_user=message.is_user,
            sql=message.sql,
        )


@dataclass
class ResultView:
    columns: List[str]
    rows: List[List[Any]]
    total_rows: int
    truncated: bool
    empty: bool
    affected_rows: Optional[int]

    @property
    def footer(self) -> Optional[str]:
        if not self.truncated:
            return None
        return f"Showing first {len(self.rows)} of {self.total_rows} rows"


def format_date(value: Optional[datetime], with_time: bool = False) -> str:
    if value is None:
        return "-"
    return value.strftime("%b %d, %Y %H:%M" if with_time else "%b %d, %Y")


def mask_connection_string(value: str) -> str:
    if len(value) < 20:
        return MASK
    return value[:15] + MASK


def format_cell(cell: Any) -> Text:
    if cell is None:
        return Text("NULL", style="dim italic")
    return Text(str(cell))


# --- SQL execution results ---
def summarize_result(result: QueryResult, limit: Optional[int] = None) -> ResultView:
    """Work out what part of a QueryResult gets drawn."""
    limit = limit if limit is not None else settings.ROW_DISPLAY_LIMIT
    rows = result.rows or []
    columns = result.columns or []
    total = result.row_count or len(rows)
    return ResultView(
        columns=columns,
        rows=rows[:limit] if columns else [],
        total_rows=total,
        truncated=bool(columns) and len(rows) > limit,
        empty=result.row_count == 0 and result.columns is not None,
        affected_rows=result.affected_rows,
    )


def render_query_result(result: QueryResult, limit: Optional[int] = None) -> RenderableType:
    view = summarize_result(result, limit)
    parts: List[RenderableType] = [
        Text(f"✅ {result.message or 'Query executed successfully'}", style="bold green")
    ]

    if view.columns and view.rows:
        table = Table(box=box.ROUNDED, expand=False, show_lines=False)
        for col in view.columns:
            table.add_column(str(col), style="cyan", overflow="fold")
        for row in view.rows:
            table.add_row(*[format_cell(cell) for cell in row])
        parts.append(table)
        if view.footer:
            parts.append(Text(view.footer, style="dim"))

    if view.affected_rows is not None:
        parts.append(Text.assemble(("Rows affected: ", "bold"), str(view.affected_rows)))

    if view.empty:
        parts.append(Text("Query returned no results", style="dim italic"))

    return Group(*parts)


def result_summary_text(result: QueryResult) -> str:
    """Plain-text recap appended to the chat transcript after an execution."""
    text = f"✅ {result.message}\n\n"
    rows = result.rows or []
    if result.columns and rows:
        text += f"Returned {result.row_count or len(rows)} row(s)\n\n"
        text += f"Columns: {', '.join(result.columns)}"
    elif result.affected_rows is not None:
        text += f"Rows affected: {result.affected_rows}"
    elif result.row_count == 0:
        text += "Query returned no results"
    return text


def render_sql_executor(sql: str, check: PermissionCheck, database_type: Optional[str] = None) -> RenderableType:
    query_type = classify_query(sql)
    statement = sql.strip()
    body: List[RenderableType] = [Syntax(statement, "sql", word_wrap=True)]
    formatted = format_sql(sql, database_type)
    if formatted != statement:
        # Reading aid only; the statement above is what gets sent
        body.append(Panel(
            Syntax(formatted, "sql", word_wrap=True),
            title="Formatted view",
            border_style="dim",
        ))
    if not check.allowed:
        body.append(Panel(
            Text(check.reason or "Operation not allowed", style="red"),
            title="⚠ Permission Denied",
            border_style="red",
        ))
    return Panel(
        Group(*body),
        title=f"SQL Query · Type: [bold]{query_type.value}[/bold]",
        border_style="blue" if check.allowed else "red",
    )


# --- Chat ---
def render_chat_message(entry: ChatEntry, index: Optional[int] = None) -> RenderableType:
    if entry.is_user:
        bubble = Panel(Text(entry.text), title="You", border_style="cyan", expand=False)
        return Align.right(bubble)

    body: List[RenderableType] = []
    if entry.text:
        body.append(Text(entry.text))
    if entry.sql:
        body.append(Panel(Syntax(entry.sql, "sql", word_wrap=True), title="SQL", border_style="dim"))
    title = "Assistant" if index is None else f"Assistant · #{index}"
    subtitle = "/run to execute" if entry.sql else None
    return Align.left(Panel(Group(*body), title=title, subtitle=subtitle, border_style="green", expand=False))


def confirm_sql(prompter: Prompter, console: Console, title: str, description: str, sql: str) -> bool:
    """Show the exact statement and ask before anything is sent for execution."""
    console.print(Panel(
        Group(Text(description), Syntax(sql.strip(), "sql", word_wrap=True)),
        title=title,
        border_style="yellow",
    ))
    return prompter.confirm("Execute", default=False)


# --- Project ---
def render_project_navigation(project: Project, is_connected: bool, active: str = "dashboard") -> RenderableType:
    tabs = []
    for name in ("dashboard", "chat", "settings"):
        label = name.capitalize()
        tabs.append(f"[bold reverse] {label} [/bold reverse]" if name == active else f" {label} ")
    status = "[green]● Connected[/green]" if is_connected else "[grey50]● Disconnected[/grey50]"
    header = Table.grid(expand=True)
    header.add_column()
    header.add_column(justify="right")
    header.add_row(
        f"[bold]{escape(project.name)}[/bold]\n[dim]{project.database_type}[/dim]",
        status,
    )
    return Panel(Group(header, Text.from_markup("  ".join(tabs))), border_style="blue")


def render_permissions(permission: Permission) -> RenderableType:
    table = Table(title="Permissions", box=box.SIMPLE, show_header=False)
    table.add_column("Operation")
    table.add_column("State")
    for label, enabled in (
        ("DDL (CREATE, ALTER, DROP)", permission.allow_ddl),
        ("Write (INSERT, UPDATE)", permission.allow_write),
        ("Read (SELECT)", permission.allow_read),
        ("Delete (DELETE, TRUNCATE)", permission.allow_delete),
    ):
        table.add_row(label, "[green]Enabled[/green]" if enabled else "[red]Disabled[/red]")
    return table


def render_projects(projects: Iterable[Project]) -> RenderableType:
    table = Table(box=box.ROUNDED, expand=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Description")
    table.add_column("Created", style="green")
    for p in projects:
        table.add_row(str(p.id), escape(p.name), p.database_type, escape(p.description or ""), format_date(p.created_at))
    return table


# --- Schema ---
def _table_node(tree: Tree, table: TableInfo, expanded: bool):
    count = len(table.columns)
    node = tree.add(f"[bold]{escape(table.name)}[/bold] [dim]{count} {'column' if count == 1 else 'columns'}[/dim]")
    if not expanded:
        return
    for column in table.columns:
        flag = "" if column.nullable else " [yellow]NOT NULL[/yellow]"
        node.add(f"{escape(column.name)} [cyan]{escape(column.type)}[/cyan]{flag}")


def render_schema(schema: DatabaseSchema, expanded: Optional[Set[str]] = None) -> RenderableType:
    """
    Schema tree. Tables named in `expanded` show their columns; by default
    only the first table is expanded.
    """
    if expanded is None:
        expanded = {schema.tables[0].name} if schema.tables else set()
    label = "table" if schema.table_count == 1 else "tables"
    tree = Tree(f"🗄  [bold]{escape(schema.database or 'database')}[/bold] · {schema.table_count} {label}")
    if not schema.tables:
        tree.add("[dim]No tables found in this database[/dim]")
    for table in schema.tables:
        _table_node(tree, table, table.name in expanded)
    return tree
