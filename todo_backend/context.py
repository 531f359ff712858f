"""Per-caller session context.

The identity manager and the task store never read a global "current
session"; callers hand them a context that holds the token.
"""
from typing import Optional

from sqlmodel import Session

from todo_backend.config import Settings
from todo_backend.database import CURRENT_SESSION_TOKEN, clear_slot, read_slot, table_lock, write_slot


class SessionContext:
    """Holds the current token for one caller (a request, a test, a script)."""

    def __init__(self, settings: Settings, token: Optional[str] = None):
        self.settings = settings
        self._token = token

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class StoredSessionContext(SessionContext):
    """Single-slot session kept in the database, shared by every caller.

    Mirrors a single-user deployment where login in one place is seen
    everywhere until logout.
    """

    def __init__(self, session: Session, settings: Settings):
        super().__init__(settings)
        self.session = session

    @property
    def token(self) -> Optional[str]:
        return read_slot(self.session, CURRENT_SESSION_TOKEN)

    def set_token(self, token: str) -> None:
        with table_lock("slots"):
            write_slot(self.session, CURRENT_SESSION_TOKEN, token)
            self.session.commit()

    def clear(self) -> None:
        with table_lock("slots"):
            clear_slot(self.session, CURRENT_SESSION_TOKEN)
            self.session.commit()
