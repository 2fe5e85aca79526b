from typing import Optional
from pydantic import BaseModel, Field

from dbchat.core.models import DatabaseType

# --- Auth Schemas ---
class SignupRequest(BaseModel):
    name: str
    email: str
    password: str

class LoginRequest(BaseModel):
    email: str
    password: str

# --- Project Schemas ---
class PermissionFlags(BaseModel):
    allow_ddl: bool = True
    allow_write: bool = True
    allow_read: bool = True
    allow_delete: bool = True

class ProjectCreate(PermissionFlags):
    name: str = Field(min_length=1)
    description: str = ""
    database_type: DatabaseType = "postgresql"
    provider: str = ""
    connection_string: str = Field(min_length=1)

class ProjectUpdate(BaseModel):
    # Only fields that are set get sent
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    connection_string: Optional[str] = None
    allow_ddl: Optional[bool] = None
    allow_write: Optional[bool] = None
    allow_read: Optional[bool] = None
    allow_delete: Optional[bool] = None

# --- Chat Schemas ---
class ChatRequest(BaseModel):
    content: str

# --- SQL Schemas ---
class ExecuteSQLRequest(BaseModel):
    query: str
    dry_run: bool = False

class ValidateSQLRequest(BaseModel):
    query: str

# --- Knowledge Schemas ---
class IngestSchemaRequest(BaseModel):
    clear_existing: bool = False
