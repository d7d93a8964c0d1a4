"""FastAPI dependencies for server endpoints.

Resolves the SessionStore and the SessionEntry for a path session id
from application state.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from anamnesis.core.errors import SessionNotFoundError
from anamnesis.server.store import SessionEntry, SessionStore


def get_store(request: Request) -> SessionStore:
    """Dependency to get the initialized SessionStore.

    Raises:
        HTTPException: 503 if no interview config is loaded
    """
    store = getattr(request.app.state, "store", None)

    if store is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service not configured",
                "message": "No interview configuration loaded. Set ANAMNESIS_CONFIG_PATH.",
            },
        )
    return store


StoreDep = Annotated[SessionStore, Depends(get_store)]


def get_session_entry(session_id: str, store: StoreDep) -> SessionEntry:
    """Dependency resolving the ``{session_id}`` path parameter.

    Raises:
        HTTPException: 404 if the session is unknown or expired
    """
    try:
        return store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=404,
            detail={"error": "Session not found", "session_id": session_id},
        ) from None


SessionDep = Annotated[SessionEntry, Depends(get_session_entry)]
