import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global client configuration.
    Read from environment variables first, then from .env.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    API_URL: str = Field(default="http://localhost:8080")
    REQUEST_TIMEOUT: float = Field(default=30.0)

    # Local session (auth token + last connection state)
    SESSION_FILE: str = Field(default=os.path.join(os.path.expanduser("~"), ".dbchat", "session.json"))
    CONNECTION_STATE_TTL: int = Field(default=3600)  # seconds

    # Rendering
    ROW_DISPLAY_LIMIT: int = Field(default=100)
    RECENT_QUERY_LIMIT: int = Field(default=5)

    # Deny execution when a project's permissions cannot be loaded
    PERMISSION_FAIL_CLOSED: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(default="WARNING")
    LOG_FILE: Optional[str] = Field(default=None)


settings = Settings()
