from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from todo_backend import identity, tasks
from todo_backend.context import SessionContext
from todo_backend.errors import InvalidInput, NotFound, Unauthenticated
from todo_backend.models import Todo, User, utcnow


def _login(session, settings, email):
    registration = identity.register(session, email.split("@")[0], email, "secret1")
    identity.verify_email(session, registration.verification_code, email)
    ctx = SessionContext(settings)
    identity.login(session, ctx, email, "secret1")
    return ctx


@pytest.fixture
def alice(session, settings):
    return _login(session, settings, "alice@x.com")


@pytest.fixture
def bob(session, settings):
    return _login(session, settings, "bob@x.com")


def test_unauthenticated_list_reads_nothing(settings):
    session = MagicMock()
    with pytest.raises(Unauthenticated):
        tasks.list_todos(session, SessionContext(settings))
    session.exec.assert_not_called()
    session.get.assert_not_called()


@pytest.mark.parametrize(
    "operation",
    [
        lambda s, c: tasks.create_todo(s, c, "Nope"),
        lambda s, c: tasks.update_todo(s, c, "id", {"title": "x"}),
        lambda s, c: tasks.delete_todo(s, c, "id"),
        lambda s, c: tasks.toggle_todo(s, c, "id"),
        lambda s, c: tasks.get_todo(s, c, "id"),
    ],
)
def test_mutations_require_session(settings, operation):
    session = MagicMock()
    with pytest.raises(Unauthenticated):
        operation(session, SessionContext(settings))
    session.add.assert_not_called()
    session.commit.assert_not_called()


def test_create_defaults(session, alice):
    todo = tasks.create_todo(session, alice, "Test")
    assert todo.completed is False
    assert todo.description == ""
    assert todo.due_date is None
    assert todo.user_id == identity.current_user(alice).id
    assert todo.created_at == todo.updated_at


def test_create_stores_due_date_in_utc(session, alice):
    due = datetime(2026, 11, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    todo = tasks.create_todo(session, alice, "Pay rent", due_date=due)
    stored = todo.due_date
    if stored.tzinfo is None:
        stored = stored.replace(tzinfo=timezone.utc)
    assert stored == datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)
    assert stored.utcoffset() == timedelta(0)


def test_new_records_carry_utc_timestamps():
    todo = Todo(title="Fresh", user_id="u1")
    user = User(name="Alice", email="a@x.com", hashed_password="x")
    for value in (todo.created_at, todo.updated_at, user.created_at, utcnow()):
        assert value.utcoffset() == timedelta(0)


def test_create_rejects_blank_title(session, alice):
    with pytest.raises(InvalidInput):
        tasks.create_todo(session, alice, " \t ")
    assert tasks.list_todos(session, alice) == []


def test_update_merges_fields(session, alice):
    todo = tasks.create_todo(session, alice, "Buy milk", description="2 litres")
    updated = tasks.update_todo(session, alice, todo.id, {"title": "Buy oat milk", "user_id": "x", "id": "y"})
    assert updated.title == "Buy oat milk"
    assert updated.description == "2 litres"
    assert updated.id == todo.id
    assert updated.user_id == identity.current_user(alice).id


def test_update_rejects_blank_title(session, alice):
    todo = tasks.create_todo(session, alice, "Keep me")
    with pytest.raises(InvalidInput):
        tasks.update_todo(session, alice, todo.id, {"title": ""})
    assert tasks.get_todo(session, alice, todo.id).title == "Keep me"


def test_update_completed_matches_toggle(session, alice):
    first = tasks.create_todo(session, alice, "Buy milk")
    second = tasks.create_todo(session, alice, "Buy milk")

    updated = tasks.update_todo(session, alice, first.id, {"completed": True})
    toggled = tasks.toggle_todo(session, alice, second.id)

    assert updated.completed is toggled.completed is True
    assert updated.updated_at > updated.created_at
    assert toggled.updated_at > toggled.created_at


def test_delete(session, alice):
    todo = tasks.create_todo(session, alice, "Gone soon")
    tasks.delete_todo(session, alice, todo.id)
    with pytest.raises(NotFound):
        tasks.get_todo(session, alice, todo.id)


def test_list_keeps_storage_order(session, alice, bob):
    tasks.create_todo(session, alice, "a1")
    tasks.create_todo(session, bob, "b1")
    tasks.create_todo(session, alice, "a2")
    tasks.create_todo(session, bob, "b2")
    tasks.create_todo(session, alice, "a3")

    assert [todo.title for todo in tasks.list_todos(session, alice)] == ["a1", "a2", "a3"]
    assert [todo.title for todo in tasks.list_todos(session, bob)] == ["b1", "b2"]


def test_foreign_todo_is_not_found(session, alice, bob):
    todo = tasks.create_todo(session, alice, "Private")

    with pytest.raises(NotFound) as foreign:
        tasks.toggle_todo(session, bob, todo.id)
    with pytest.raises(NotFound) as missing:
        tasks.toggle_todo(session, bob, "does-not-exist")
    assert foreign.value.message == missing.value.message == "Todo not found"

    with pytest.raises(NotFound):
        tasks.update_todo(session, bob, todo.id, {"completed": True})
    with pytest.raises(NotFound):
        tasks.delete_todo(session, bob, todo.id)

    unchanged = tasks.get_todo(session, alice, todo.id)
    assert unchanged.completed is False
    assert unchanged.updated_at == unchanged.created_at
