from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @field_validator("*", mode="after")
    @classmethod
    def assume_utc(cls, value):
        # Stored timestamps are UTC; SQLite hands them back without a zone
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ---------------- users & auth ----------------

class UserSchema(CamelModel):
    id: str
    username: str
    email: str
    role: str
    created_at: datetime


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)

    @field_validator("username", "email")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("password")
    @classmethod
    def fits_hash(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(CamelModel):
    token: str
    expires_at: datetime
    user: UserSchema


class MessageResponse(BaseModel):
    message: str


# ---------------- tasks & comments ----------------

class CommentSchema(CamelModel):
    id: str
    content: str
    # author username
    author: str
    created_at: datetime


class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class TaskSchema(CamelModel):
    id: str
    title: str
    description: str
    state: str
    priority: int
    # assignee username, not id
    assignee: Optional[str] = None
    comments: List[CommentSchema] = []
    created_at: datetime
    updated_at: datetime


class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    state: str = "backlog"
    priority: int = 0
    # user id; empty means unassigned
    assignee: Optional[str] = None


class TaskPatch(BaseModel):
    """Partial task update.

    Only the keys present in the request body are applied. Unknown keys are
    kept in ``model_extra`` so the permission check can see them, but they are
    never written.
    """

    state: Optional[str] = None
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    priority: Optional[int] = None
    assignee: Optional[str] = None

    class Config:
        extra = "allow"

    def provided_keys(self):
        return set(self.model_fields_set) | set(self.model_extra or {})

    def changes(self):
        """Recognized fields that were sent with a non-null value."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if name in self.model_fields_set and getattr(self, name) is not None
        }


# ---------------- board ----------------

class ColumnSchema(CamelModel):
    id: str
    title: str
    task_ids: List[str] = []


class BoardSchema(CamelModel):
    tasks: Dict[str, TaskSchema] = {}
    columns: Dict[str, ColumnSchema] = {}
    column_order: List[str] = []


# ---------------- notifications ----------------

class NotificationSchema(CamelModel):
    id: str
    user_id: str
    message: str
    read: bool
    created_at: datetime
