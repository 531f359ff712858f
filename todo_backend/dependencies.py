import asyncio
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from todo_backend.config import Settings, get_settings
from todo_backend.context import SessionContext, StoredSessionContext
from todo_backend.database import SessionDep

bearer_scheme = HTTPBearer(auto_error=False)

SettingsDep = Annotated[Settings, Depends(get_settings)]


async def simulate_latency(settings: SettingsDep) -> None:
    """Emulate a backend round trip before the operation runs."""
    if settings.latency_ms > 0:
        await asyncio.sleep(settings.latency_ms / 1000)


def get_session_context(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    session: SessionDep,
    settings: SettingsDep,
) -> SessionContext:
    """Build the caller's session context for this request."""
    if settings.session_mode == "stored":
        return StoredSessionContext(session, settings)
    return SessionContext(settings, token=credentials.credentials if credentials else None)


ContextDep = Annotated[SessionContext, Depends(get_session_context)]
