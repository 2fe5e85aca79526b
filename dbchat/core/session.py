import json
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from dbchat.core.config import settings

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "auth_token"
CONNECTION_STATE_KEY = "db_connection_state"


class SessionStore:
    """
    Local client session: the bearer token and the most recent database
    connection state, persisted as a small JSON file.

    Only one connection-state record is kept. It is trusted for
    `connection_ttl` seconds and only for the project it was written for.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        connection_ttl: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.path = path or settings.SESSION_FILE
        self.connection_ttl = connection_ttl if connection_ttl is not None else settings.CONNECTION_STATE_TTL
        self.clock = clock

    # --- storage ---
    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # Holds the bearer token: owner read/write only
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.chmod(self.path, 0o600)

    def _update(self, key: str, value: Any):
        data = self._load()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self._save(data)

    # --- auth token ---
    def get_token(self) -> Optional[str]:
        token = self._load().get(AUTH_TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str):
        self._update(AUTH_TOKEN_KEY, token)

    def clear_token(self):
        self._update(AUTH_TOKEN_KEY, None)

    def is_authenticated(self) -> bool:
        return self.get_token() is not None

    def logout(self):
        data = self._load()
        data.pop(AUTH_TOKEN_KEY, None)
        data.pop(CONNECTION_STATE_KEY, None)
        self._save(data)

    # --- connection state ---
    def get_connection_state(self, project_id: int) -> bool:
        state = self._load().get(CONNECTION_STATE_KEY)
        if not isinstance(state, dict):
            return False
        try:
            same_project = int(state.get("project_id")) == project_id
            age = self.clock() - float(state.get("timestamp", 0))
        except (TypeError, ValueError):
            return False
        if not same_project or age >= self.connection_ttl:
            return False
        return bool(state.get("is_connected", False))

    def set_connection_state(self, project_id: int, is_connected: bool):
        self._update(CONNECTION_STATE_KEY, {
            "project_id": project_id,
            "is_connected": is_connected,
            "timestamp": self.clock(),
        })

    def clear_connection_state(self):
        self._update(CONNECTION_STATE_KEY, None)
