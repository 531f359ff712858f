import threading
from contextlib import ExitStack, contextmanager
from typing import Annotated

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from todo_backend.config import get_settings
from todo_backend.models import Slot

CURRENT_SESSION_TOKEN = "current-session-token"
PENDING_VERIFICATION = "pending-verification"

settings = get_settings()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


engine = build_engine(settings.database_url, echo=settings.database_echo)


def create_db_and_tables(bind: Engine = engine):
    SQLModel.metadata.create_all(bind)


def get_session():
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]


# One writer at a time per logical table
_TABLE_LOCKS = {
    "users": threading.RLock(),
    "todos": threading.RLock(),
    "slots": threading.RLock(),
}


@contextmanager
def table_lock(*tables: str):
    """Serialize read-modify-write sequences on the given tables.

    Locks are taken in sorted order so callers holding several never deadlock.
    """
    with ExitStack() as stack:
        for name in sorted(set(tables)):
            stack.enter_context(_TABLE_LOCKS[name])
        yield


def read_slot(session: Session, key: str) -> str | None:
    slot = session.get(Slot, key)
    return slot.value if slot else None


def write_slot(session: Session, key: str, value: str) -> None:
    """Stage a slot value; the caller commits."""
    slot = session.get(Slot, key)
    if slot is None:
        slot = Slot(key=key, value=value)
    else:
        slot.value = value
    session.add(slot)


def clear_slot(session: Session, key: str) -> None:
    """Stage removal of a slot; the caller commits."""
    slot = session.get(Slot, key)
    if slot is not None:
        session.delete(slot)
