import logging
from dataclasses import dataclass

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

logger = logging.getLogger(__name__)

# URL backend names accepted for each project database type
BACKENDS = {
    "postgresql": {"postgresql", "postgres"},
    "mysql": {"mysql", "mariadb"},
}


@dataclass(frozen=True)
class ConnectionCheck:
    ok: bool
    message: str


def check_connection_string(database_type: str, connection_string: str) -> ConnectionCheck:
    """
    Local sanity check of a connection string before a project is saved.
    The backend does the real connect; this only catches strings that can
    never work for the chosen database type.
    """
    if not connection_string:
        return ConnectionCheck(False, "Connection string is required")

    try:
        url = make_url(connection_string)
    except ArgumentError as e:
        logger.debug(f"Unparsable connection string: {e}")
        return ConnectionCheck(False, "Could not parse connection string")

    backend = url.get_backend_name()
    expected = BACKENDS.get(database_type)
    if expected is None:
        return ConnectionCheck(False, f"Unsupported database type: {database_type}")
    if backend not in expected:
        return ConnectionCheck(False, f"Connection string is for '{backend}', not {database_type}")
    if not url.host:
        return ConnectionCheck(False, "Connection string has no host")
    if not url.database:
        return ConnectionCheck(False, "Connection string has no database name")

    return ConnectionCheck(True, f"Connection string looks valid ({backend} on {url.host})")
