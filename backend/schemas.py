"""
Database Schemas for the Kanban board

Each collection model below maps to a MongoDB collection. The collection name
is the lowercased class name. Example: class User -> collection "user".
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

TaskStatus = Literal["todo", "inProgress", "done"]
TASK_STATUSES = ("todo", "inProgress", "done")


class User(BaseModel):
    """
    Users collection schema
    Collection: "user"
    """
    username: str = Field(..., min_length=1, description="Unique username")
    password_hash: Optional[str] = Field(None, description="BCrypt password hash, unset for Google accounts")
    email: Optional[EmailStr] = None
    google_id: Optional[str] = Field(None, description="Google account subject id")


class Task(BaseModel):
    """
    Tasks collection schema
    Collection: "task"
    """
    text: str = Field(..., min_length=1)
    status: TaskStatus = "todo"
    owners: List[str] = Field(default_factory=list, description="Owner user ids (stringified ObjectId)")


# Request payloads (not collections)
class SignupPayload(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginPayload(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class GoogleLoginPayload(BaseModel):
    credential: Optional[str] = None


class TaskCreate(BaseModel):
    text: Optional[str] = None


class TaskUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=1)
    status: Optional[TaskStatus] = None


class TaskShare(BaseModel):
    toUsername: Optional[str] = None


class TokenClaims(BaseModel):
    """Claims carried by a verified bearer token."""
    user_id: str
    username: str


class GoogleIdentity(BaseModel):
    sub: str
    email: Optional[EmailStr] = None
    name: Optional[str] = None
