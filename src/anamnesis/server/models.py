"""API Models - Pydantic models for FastAPI endpoints.

Defines request and response schemas for the Anamnesis REST API.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, StrictBool

from anamnesis.core.types import SlotValue, TurnResult


class TurnRequest(BaseModel):
    """Request model for submitting a respondent utterance."""

    utterance: str = Field(min_length=1, description="Respondent's reply")
    slot_id: str | None = Field(
        default=None, description="Slot being answered; defaults to the slot last asked"
    )


class SkipRequest(BaseModel):
    """Request model for force-skipping a slot."""

    slot_id: str | None = Field(
        default=None, description="Slot to skip; defaults to the slot last asked"
    )


class HybridModeRequest(BaseModel):
    """Request model for switching multi-slot routing for one session."""

    enabled: StrictBool = Field(description="Whether turns are routed before extraction")


class HybridModeResponse(BaseModel):
    session_id: str
    hybrid_mode: bool


class TurnResponse(BaseModel):
    """Outcome of a session operation that moves the interview."""

    session_id: str
    phase: str = Field(description="collecting, review or complete")
    result: TurnResult


class StateResponse(BaseModel):
    """Response model for the session state endpoint."""

    session_id: str
    phase: str
    current_slot: str | None
    filled_slots: dict[str, SlotValue]
    skipped_slots: list[str]
    interaction_count: int
    hybrid_mode: bool


class SummaryResponse(BaseModel):
    """Response model for the summary endpoint."""

    session_id: str
    summary: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "starting"]
    version: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    interview: str | None = None
    active_sessions: int = 0
