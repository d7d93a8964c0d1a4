"""Anamnesis FastAPI Application.

Provides REST API endpoints for running interviews over HTTP. Each session
is held in memory by the SessionStore; turns of one session are serialized
with the session's lock.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, Request

from anamnesis import __version__
from anamnesis.config import AnamnesisConfig
from anamnesis.core.errors import ConfigError
from anamnesis.core.types import SessionStats, TurnResult
from anamnesis.du.interfaces import Delegates
from anamnesis.server.dependencies import SessionDep, StoreDep
from anamnesis.server.errors import global_exception_handler
from anamnesis.server.models import (
    HealthResponse,
    HybridModeRequest,
    HybridModeResponse,
    SkipRequest,
    StateResponse,
    SummaryResponse,
    TurnRequest,
    TurnResponse,
)
from anamnesis.server.store import SessionEntry, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "anamnesis.yaml"


def _build_store(config: AnamnesisConfig, delegates: Delegates | None = None) -> SessionStore:
    if delegates is None:
        from anamnesis.core.dspy_service import DSPyBootstrapper
        from anamnesis.du.modules import build_dspy_delegates

        DSPyBootstrapper.bootstrap(config)
        delegates = build_dspy_delegates(config.settings.models.use_reasoning or None)
    return SessionStore(config, delegates)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - load the interview config on startup."""
    if getattr(app.state, "store", None) is not None:
        yield
        return

    from dotenv import load_dotenv

    load_dotenv()

    config_path = os.environ.get("ANAMNESIS_CONFIG_PATH")
    if not config_path and os.path.exists(DEFAULT_CONFIG_FILE):
        config_path = DEFAULT_CONFIG_FILE

    if not config_path:
        logger.warning(
            f"ANAMNESIS_CONFIG_PATH not set and {DEFAULT_CONFIG_FILE} not found. "
            "App will start unconfigured."
        )
        yield
        return

    logger.info(f"Loading config from {config_path}")
    try:
        from anamnesis.config.loader import ConfigLoader

        config = ConfigLoader.load(config_path)
        store = _build_store(config)
    except ConfigError as e:
        logger.error(f"Failed to load config: {e}")
        yield
        return

    app.state.config = config
    app.state.store = store
    logger.info(f"Interview '{config.name}' ready with {len(config.slots)} slots")
    yield
    logger.info("Shutting down, dropping in-memory sessions")


def _turn_response(entry: SessionEntry, result: TurnResult) -> TurnResponse:
    session = entry.session
    return TurnResponse(session_id=session.session_id, phase=session.phase.value, result=result)


def create_app(
    config: AnamnesisConfig | None = None,
    delegates: Delegates | None = None,
) -> FastAPI:
    """Factory function.

    Args:
        config: Interview config; when omitted it is loaded on startup from
            ANAMNESIS_CONFIG_PATH (or ./anamnesis.yaml)
        delegates: Delegate implementations; DSPy modules when omitted
    """
    app = FastAPI(
        title="Anamnesis Interview Engine",
        description="Slot-graph interview dialog engine with DSPy-backed understanding",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(Exception, global_exception_handler)

    if config is not None:
        app.state.config = config
        app.state.store = _build_store(config, delegates)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Health check."""
        store: SessionStore | None = getattr(request.app.state, "store", None)
        status: Literal["healthy", "starting"] = "healthy" if store is not None else "starting"
        return HealthResponse(
            status=status,
            version=__version__,
            interview=store.config.name if store is not None else None,
            active_sessions=len(store) if store is not None else 0,
        )

    @app.post("/sessions", response_model=TurnResponse, status_code=201)
    async def start_session(store: StoreDep) -> TurnResponse:
        """Start a new interview and return its first question."""
        entry = store.create()
        async with entry.lock:
            result = entry.session.start_session()
        return _turn_response(entry, result)

    @app.post("/sessions/{session_id}/turns", response_model=TurnResponse)
    async def submit_turn(request: TurnRequest, entry: SessionDep) -> TurnResponse:
        """Submit a respondent utterance."""
        async with entry.lock:
            result = await entry.session.submit_turn(request.slot_id, request.utterance)
        return _turn_response(entry, result)

    @app.post("/sessions/{session_id}/skip", response_model=TurnResponse)
    async def skip_slot(request: SkipRequest, entry: SessionDep) -> TurnResponse:
        """Force-skip a slot (usually after the engine suggested it)."""
        async with entry.lock:
            result = entry.session.skip_slot(request.slot_id)
        return _turn_response(entry, result)

    @app.post("/sessions/{session_id}/reset", response_model=TurnResponse)
    async def reset_session(entry: SessionDep) -> TurnResponse:
        """Clear the session and start over."""
        async with entry.lock:
            result = entry.session.reset_session()
        return _turn_response(entry, result)

    @app.post("/sessions/{session_id}/hybrid-mode", response_model=HybridModeResponse)
    async def set_hybrid_mode(request: HybridModeRequest, entry: SessionDep) -> HybridModeResponse:
        """Switch multi-slot routing on or off for this session."""
        async with entry.lock:
            entry.session.set_hybrid_mode(request.enabled)
        return HybridModeResponse(
            session_id=entry.session.session_id, hybrid_mode=entry.session.hybrid_mode
        )

    @app.get("/sessions/{session_id}/stats", response_model=SessionStats)
    async def get_stats(entry: SessionDep) -> SessionStats:
        """Conversation statistics."""
        return entry.session.get_stats()

    @app.get("/sessions/{session_id}", response_model=StateResponse)
    async def get_state(entry: SessionDep) -> StateResponse:
        """Current state of the session."""
        return StateResponse(**entry.session.describe())

    @app.post("/sessions/{session_id}/summary", response_model=SummaryResponse)
    async def generate_summary(entry: SessionDep) -> SummaryResponse:
        """Generate a summary of what has been collected so far."""
        async with entry.lock:
            summary = await entry.session.generate_summary()
        return SummaryResponse(session_id=entry.session.session_id, summary=summary)

    return app


app = create_app()
