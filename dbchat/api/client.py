"""
REST client for the database-assistant backend.

Every call returns an `ApiResponse`; nothing raises. Transport failures,
non-2xx statuses and payloads that do not match the expected model all come
back as `success=False` with an `error` string, so callers only ever branch
on `response.success`.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from dbchat.api.schemas import (
    ChatRequest,
    ExecuteSQLRequest,
    IngestSchemaRequest,
    LoginRequest,
    ProjectCreate,
    ProjectUpdate,
    SignupRequest,
    ValidateSQLRequest,
)
from dbchat.core.config import settings
from dbchat.core.models import (
    ApiResponse,
    ChatMessage,
    ChatResponse,
    ConnectionResult,
    DashboardData,
    DatabaseInfo,
    DatabaseSchema,
    DeleteSchemaResponse,
    IngestSchemaResponse,
    LoginResult,
    MessageResult,
    Permission,
    Project,
    ProjectSummary,
    QdrantSchemaResponse,
    QueryResult,
    SignupResult,
    ValidationResult,
)
from dbchat.core.session import SessionStore

logger = logging.getLogger(__name__)


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


class ApiClient:
    def __init__(
        self,
        session: SessionStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.Client(
            base_url=base_url or settings.API_URL,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, endpoint: str, body: Optional[BaseModel] = None, model: Any = None) -> ApiResponse:
        """Send one request and normalize whatever comes back."""
        envelope = ApiResponse[model] if model is not None else ApiResponse
        payload_body = body.model_dump(exclude_none=True) if body is not None else None

        logger.debug(f"API request: {method} {endpoint} {payload_body or ''}")
        try:
            response = self._client.request(method, endpoint, json=payload_body, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"API error: {method} {endpoint}: {e}")
            return envelope.failure(str(e) or e.__class__.__name__)

        try:
            data = response.json()
        except ValueError:
            data = None
        logger.debug(f"API response: {response.status_code} {data}")

        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            return envelope.failure(error or f"HTTP {response.status_code}")

        if not isinstance(data, dict):
            return envelope.failure("Invalid response from server: expected a JSON object")

        if not data.get("success"):
            return envelope(
                success=False,
                message=data.get("message"),
                error=data.get("error") or data.get("message") or "Request failed",
            )

        try:
            return envelope.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected payload for {method} {endpoint}: {e}")
            return envelope.failure(f"Invalid response from server: {_first_error(e)}")

    # --- Auth ---
    def signup(self, name: str, email: str, password: str) -> ApiResponse:
        return self._request("POST", "/api/auth/signup", SignupRequest(name=name, email=email, password=password), SignupResult)

    def login(self, email: str, password: str) -> ApiResponse:
        return self._request("POST", "/api/auth/login", LoginRequest(email=email, password=password), LoginResult)

    # --- Projects ---
    def create_project(
        self,
        name: str,
        description: str,
        database_type: str,
        provider: str,
        connection_string: str,
        permissions: Optional[Dict[str, bool]] = None,
    ) -> ApiResponse:
        try:
            body = ProjectCreate(
                name=name,
                description=description,
                database_type=database_type,
                provider=provider,
                connection_string=connection_string,
                **(permissions or {}),
            )
        except ValidationError as e:
            return ApiResponse.failure(_first_error(e))
        return self._request("POST", "/api/projects", body, Project)

    def get_projects(self) -> ApiResponse:
        return self._request("GET", "/api/projects", model=List[Project])

    def get_project(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/projects/{project_id}", model=Project)

    def update_project(self, project_id: int, **updates) -> ApiResponse:
        try:
            body = ProjectUpdate(**updates)
        except ValidationError as e:
            return ApiResponse.failure(_first_error(e))
        return self._request("PUT", f"/api/projects/{project_id}", body, Project)

    def delete_project(self, project_id: int) -> ApiResponse:
        return self._request("DELETE", f"/api/projects/{project_id}")

    # --- Dashboards ---
    def get_dashboard(self) -> ApiResponse:
        return self._request("GET", "/api/dashboard", model=DashboardData)

    def get_project_summary(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/projects/{project_id}/summary", model=ProjectSummary)

    # --- Chat ---
    def send_chat_message(self, project_id: int, content: str) -> ApiResponse:
        return self._request("POST", f"/api/chat/{project_id}", ChatRequest(content=content), ChatResponse)

    def get_chat_history(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/chat/{project_id}/history", model=List[ChatMessage])

    # --- Database operations ---
    def connect_database(self, project_id: int) -> ApiResponse:
        return self._request("POST", f"/api/projects/{project_id}/connect-db", model=ConnectionResult)

    def disconnect_database(self, project_id: int) -> ApiResponse:
        return self._request("POST", f"/api/projects/{project_id}/disconnect-db", model=MessageResult)

    def execute_sql(self, project_id: int, query: str, dry_run: bool = False) -> ApiResponse:
        body = ExecuteSQLRequest(query=query, dry_run=dry_run)
        return self._request("POST", f"/api/projects/{project_id}/execute-sql", body, QueryResult)

    def validate_sql(self, project_id: int, query: str) -> ApiResponse:
        body = ValidateSQLRequest(query=query)
        return self._request("POST", f"/api/projects/{project_id}/validate-sql", body, ValidationResult)

    def get_database_info(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/projects/{project_id}/db-info", model=DatabaseInfo)

    def get_project_schema(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/projects/{project_id}/get-schema", model=DatabaseSchema)

    def get_project_permissions(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/projects/{project_id}/permissions", model=Permission)

    # --- Schema management (vector store) ---
    def ingest_schema(self, project_id: int, clear_existing: bool = False) -> ApiResponse:
        body = IngestSchemaRequest(clear_existing=clear_existing)
        return self._request("POST", f"/api/projects/{project_id}/ingest-schema", body, IngestSchemaResponse)

    def update_schema(self, project_id: int) -> ApiResponse:
        return self._request("POST", f"/api/projects/{project_id}/update-schema", model=IngestSchemaResponse)

    def get_schema_from_qdrant(self, project_id: int) -> ApiResponse:
        return self._request("GET", f"/api/projects/{project_id}/get-schema-from-qdrant", model=QdrantSchemaResponse)

    def delete_schema(self, project_id: int) -> ApiResponse:
        return self._request("DELETE", f"/api/projects/{project_id}/delete-schema", model=DeleteSchemaResponse)
