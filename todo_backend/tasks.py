"""Task store: per-user CRUD and toggle over todos.

Each operation resolves the caller first and then only ever looks up
todos with ``id`` and ``user_id`` together, so another user's todo is
indistinguishable from a missing one.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlmodel import Session, select

from todo_backend.context import SessionContext
from todo_backend.database import table_lock
from todo_backend.errors import InvalidInput, NotFound
from todo_backend.identity import require_user
from todo_backend.models import Todo, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "due_date", "completed")


def _clean_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise InvalidInput("Title is required")
    return title.strip()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Express ``value`` in UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _touch(todo: Todo) -> None:
    now = utcnow()
    previous = _as_utc(todo.updated_at)
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    todo.updated_at = now


def _get_owned(session: Session, todo_id: str, user_id: str) -> Todo:
    todo = session.exec(
        select(Todo).where(Todo.id == todo_id, Todo.user_id == user_id)
    ).first()
    if not todo:
        raise NotFound("Todo not found")
    return todo


def list_todos(session: Session, ctx: SessionContext) -> list[Todo]:
    """All todos of the caller in storage order."""
    user = require_user(ctx)
    return list(session.exec(select(Todo).where(Todo.user_id == user.id).order_by(Todo.pk)).all())


def get_todo(session: Session, ctx: SessionContext, todo_id: str) -> Todo:
    user = require_user(ctx)
    return _get_owned(session, todo_id, user.id)


def create_todo(
    session: Session,
    ctx: SessionContext,
    title: str,
    description: Optional[str] = None,
    due_date: Optional[datetime] = None,
) -> Todo:
    user = require_user(ctx)
    now = utcnow()
    todo = Todo(
        title=_clean_title(title),
        description=description or "",
        due_date=_as_utc(due_date),
        user_id=user.id,
        created_at=now,
        updated_at=now,
    )
    with table_lock("todos"):
        session.add(todo)
        session.commit()
        session.refresh(todo)
    logger.info(f"User {user.id} created todo {todo.id}")
    return todo


def update_todo(session: Session, ctx: SessionContext, todo_id: str, changes: dict[str, Any]) -> Todo:
    """Merge ``changes`` over the todo; unknown keys, ids and timestamps are ignored."""
    user = require_user(ctx)
    updates = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if "title" in updates:
        updates["title"] = _clean_title(updates["title"])
    if "description" in updates and updates["description"] is None:
        updates["description"] = ""
    if "completed" in updates and updates["completed"] is None:
        del updates["completed"]
    if "due_date" in updates:
        updates["due_date"] = _as_utc(updates["due_date"])

    with table_lock("todos"):
        todo = _get_owned(session, todo_id, user.id)
        for key, value in updates.items():
            setattr(todo, key, value)
        _touch(todo)
        session.add(todo)
        session.commit()
        session.refresh(todo)
    logger.info(f"User {user.id} updated todo {todo.id}")
    return todo


def delete_todo(session: Session, ctx: SessionContext, todo_id: str) -> None:
    user = require_user(ctx)
    with table_lock("todos"):
        todo = _get_owned(session, todo_id, user.id)
        session.delete(todo)
        session.commit()
    logger.info(f"User {user.id} deleted todo {todo_id}")


def toggle_todo(session: Session, ctx: SessionContext, todo_id: str) -> Todo:
    user = require_user(ctx)
    with table_lock("todos"):
        todo = _get_owned(session, todo_id, user.id)
        todo.completed = not todo.completed
        _touch(todo)
        session.add(todo)
        session.commit()
        session.refresh(todo)
    logger.info(f"User {user.id} toggled todo {todo.id} -> {todo.completed}")
    return todo
