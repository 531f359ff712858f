import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


# Database Tables
class User(SQLModel, table=True):
    """User account; unverified until the emailed code is confirmed."""
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    hashed_password: str
    verified: bool = Field(default=False)
    verification_code: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)


class Todo(SQLModel, table=True):
    __tablename__ = "todos"

    # pk keeps insertion order, id is the public identifier
    pk: int | None = Field(default=None, primary_key=True)
    id: str = Field(default_factory=new_id, unique=True, index=True)
    title: str
    description: str = Field(default="")
    due_date: datetime | None = Field(default=None)
    completed: bool = Field(default=False)
    user_id: str = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Slot(SQLModel, table=True):
    """Small named values: current-session-token, pending-verification."""
    __tablename__ = "slots"

    key: str = Field(primary_key=True)
    value: str


# Session identity decoded from a token
class SessionIdentity(SQLModel):
    id: str
    email: str
    exp: float | None = None


class PendingVerification(SQLModel):
    code: str
    email: str


# API Schemas (camelCase on the wire)
class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRead(ApiModel):
    id: str
    email: str


class RegisterRequest(ApiModel):
    name: str
    email: str
    password: str


class RegisterResponse(ApiModel):
    message: str
    user: UserRead
    verification_code: str | None = None


class VerifyEmailRequest(ApiModel):
    code: str
    email: str


class LoginRequest(ApiModel):
    email: str
    password: str


class UserMessageResponse(ApiModel):
    message: str
    user: UserRead


class LoginResponse(ApiModel):
    message: str
    token: str
    user: UserRead


class ProfileResponse(ApiModel):
    user: UserRead


class MessageResponse(ApiModel):
    message: str


class TodoCreate(ApiModel):
    title: str
    description: str | None = None
    due_date: datetime | None = None


class TodoUpdate(ApiModel):
    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    completed: bool | None = None


class TodoRead(ApiModel):
    id: str
    title: str
    description: str
    due_date: datetime | None
    completed: bool
    user_id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_todo(cls, todo: Todo) -> "TodoRead":
        return cls(
            id=todo.id,
            title=todo.title,
            description=todo.description,
            due_date=todo.due_date,
            completed=todo.completed,
            user_id=todo.user_id,
            created_at=todo.created_at,
            updated_at=todo.updated_at,
        )


class TodoResponse(ApiModel):
    todo: TodoRead


class TodoListResponse(ApiModel):
    todos: list[TodoRead]
