from datetime import datetime
from typing import Any, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

DatabaseType = Literal["postgresql", "mysql"]


class APIModel(BaseModel):
    """Base for everything parsed out of a backend response."""
    model_config = ConfigDict(extra="ignore")


class User(APIModel):
    id: int
    name: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Permission(APIModel):
    id: Optional[int] = None
    project_id: Optional[int] = None
    allow_ddl: bool = False
    allow_write: bool = False
    allow_read: bool = False
    allow_delete: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Project(APIModel):
    id: int
    user_id: Optional[int] = None
    name: str
    description: str = ""
    database_type: DatabaseType
    provider: str = ""
    connection_string: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[User] = None
    permission: Optional[Permission] = None


# --- Schema reflection ---
class ColumnInfo(APIModel):
    name: str
    type: str
    nullable: bool = True


class TableInfo(APIModel):
    name: str
    columns: List[ColumnInfo] = Field(default_factory=list)


class DatabaseInfo(APIModel):
    connected: bool = False
    database_type: str = ""
    database_name: str = ""
    tables: List[TableInfo] = Field(default_factory=list)


class DatabaseSchema(APIModel):
    db_type: str = ""
    database: str = ""
    host: str = ""
    port: Optional[int] = None
    table_count: int = 0
    tables: List[TableInfo] = Field(default_factory=list)


# --- SQL execution ---
class QueryResult(APIModel):
    columns: Optional[List[str]] = None
    rows: Optional[List[List[Any]]] = None
    row_count: Optional[int] = None
    affected_rows: Optional[int] = None
    message: str = ""


class ValidationResult(APIModel):
    valid: bool
    message: str = ""
    query_type: Optional[str] = None
    estimated_cost: Optional[str] = None


class ConnectionResult(APIModel):
    session_id: str = ""
    message: str = ""
    database_type: str = ""


class MessageResult(APIModel):
    message: str = ""


# --- Dashboards ---
class RecentQuery(APIModel):
    id: int
    project_id: int
    query: str
    status: Literal["success", "error"]
    result: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None


class ProjectSummary(APIModel):
    project_id: int
    project_name: str = ""
    database_type: str = ""
    table_count: int = 0
    total_queries: int = 0
    recent_queries: List[RecentQuery] = Field(default_factory=list)


class DashboardData(APIModel):
    total_projects: int = 0
    total_queries: int = 0
    total_messages: int = 0


# --- Chat ---
class AIResponse(APIModel):
    content: str = ""
    query: Optional[str] = None


class ChatMessage(APIModel):
    id: int
    project_id: int
    role: Literal["user", "assistant"]
    content: str = ""
    ai_response: Optional[AIResponse] = None
    created_at: Optional[datetime] = None

    @property
    def is_user(self) -> bool:
        return self.role == "user"

    @property
    def display_text(self) -> str:
        if self.is_user:
            return self.content
        if self.ai_response and self.ai_response.content:
            return self.ai_response.content
        return self.content

    @property
    def sql(self) -> Optional[str]:
        return self.ai_response.query if self.ai_response else None


class ChatResponse(APIModel):
    user_message: ChatMessage
    ai_message: ChatMessage
    ai_response: AIResponse


# --- Auth ---
class SignupResult(APIModel):
    user: User


class LoginResult(APIModel):
    token: str
    user: Optional[User] = None


# --- Vector-store schema lifecycle ---
class IngestSchemaResponse(APIModel):
    success: Optional[bool] = None
    project_id: Union[int, str] = ""
    tables_ingested: Optional[int] = None
    message: str = ""
    error: Optional[str] = None


class QdrantSchemaResponse(APIModel):
    success: Optional[bool] = None
    project_id: Union[int, str] = ""
    db_type: Optional[str] = None
    table_count: int = 0
    tables: List[TableInfo] = Field(default_factory=list)
    message: str = ""
    error: Optional[str] = None


class DeleteSchemaResponse(APIModel):
    success: Optional[bool] = None
    project_id: Union[int, str] = ""
    message: str = ""
    error: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope every backend call is normalized to.
    Callers branch on `success`; `data` is only set for successful calls.
    """
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    message: Optional[str] = None
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ApiResponse":
        return cls(success=False, error=error)
