import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import sqlglot
from sqlglot.errors import SqlglotError

from dbchat.core.models import Permission

logger = logging.getLogger(__name__)


class QueryType(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DDL = "DDL"
    UNKNOWN = "UNKNOWN"


# Checked in order; first matching leading keyword wins
_PREFIXES = (
    ("SELECT", QueryType.SELECT),
    ("INSERT", QueryType.INSERT),
    ("UPDATE", QueryType.UPDATE),
    ("DELETE", QueryType.DELETE),
    ("TRUNCATE", QueryType.DELETE),
    ("CREATE", QueryType.DDL),
    ("ALTER", QueryType.DDL),
    ("DROP", QueryType.DDL),
    ("RENAME", QueryType.DDL),
)


@dataclass(frozen=True)
class PermissionCheck:
    allowed: bool
    reason: Optional[str] = None


def classify_query(sql: str) -> QueryType:
    """
    Label a statement by its leading keyword (case-insensitive, surrounding
    whitespace ignored). Every input maps to exactly one QueryType.
    """
    normalized = (sql or "").strip().upper()
    for prefix, query_type in _PREFIXES:
        if normalized.startswith(prefix):
            return query_type
    return QueryType.UNKNOWN


def can_execute(sql: str, permission: Optional[Permission], fail_closed: bool = False) -> PermissionCheck:
    """
    Decide whether the statement may be sent to the backend for execution.

    Without a permission record everything is allowed unless `fail_closed`
    is set.
    """
    if permission is None:
        if fail_closed:
            return PermissionCheck(False, "Project permissions are unavailable")
        return PermissionCheck(True)

    query_type = classify_query(sql)

    if query_type == QueryType.SELECT:
        if not permission.allow_read:
            return PermissionCheck(False, "Read operations are disabled for this project")
    elif query_type in (QueryType.INSERT, QueryType.UPDATE):
        if not permission.allow_write:
            return PermissionCheck(False, "Write operations are disabled for this project")
    elif query_type == QueryType.DELETE:
        if not permission.allow_delete:
            return PermissionCheck(False, "Delete operations are disabled for this project")
    elif query_type == QueryType.DDL:
        if not permission.allow_ddl:
            return PermissionCheck(False, "DDL operations are disabled for this project")
    else:
        return PermissionCheck(False, "Unknown query type")

    return PermissionCheck(True)


_DIALECTS = {"postgresql": "postgres", "mysql": "mysql"}


def format_sql(sql: str, database_type: Optional[str] = None) -> str:
    """
    Pretty-print a statement for review. Falls back to the raw text when
    sqlglot cannot parse it.
    """
    if not sql or not sql.strip():
        return sql
    try:
        statements = sqlglot.transpile(
            sql,
            read=_DIALECTS.get(database_type or ""),
            pretty=True,
        )
    except SqlglotError as e:
        logger.debug(f"SQL formatting skipped: {e}")
        return sql.strip()
    return ";\n".join(statements) if statements else sql.strip()
