"""Anamnesis Server Module.

Provides FastAPI-based REST API for running interviews.
"""

from anamnesis.server.api import app, create_app
from anamnesis.server.models import (
    HealthResponse,
    SkipRequest,
    StateResponse,
    SummaryResponse,
    TurnRequest,
    TurnResponse,
)
from anamnesis.server.store import SessionStore

__all__ = [
    "app",
    "create_app",
    "HealthResponse",
    "SessionStore",
    "SkipRequest",
    "StateResponse",
    "SummaryResponse",
    "TurnRequest",
    "TurnResponse",
]
