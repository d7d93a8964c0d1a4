"""Shared fixtures for Anamnesis tests.

Delegates are AsyncMock stubs, so no test ever reaches a language model.
The default stubs route every turn to "ask", find no value, and return
fixed clarification and summary texts.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from anamnesis.config.models import AnamnesisConfig
from anamnesis.config.settings import DialogueConfig
from anamnesis.core.constants import TurnAction
from anamnesis.core.state import SessionState
from anamnesis.dm.controller import TurnController
from anamnesis.du.gateway import DelegateGateway
from anamnesis.du.interfaces import Delegates
from anamnesis.du.models import RouteDecision, SingleExtraction
from anamnesis.graph.models import SlotGraph

INTAKE_SLOTS = [
    {
        "id": "full_name",
        "prompt": "What is your full name?",
        "default_next": "dob",
    },
    {
        "id": "dob",
        "prompt": "What is your date of birth?",
        "type": "date",
        "normalizer": "age_to_birth_year",
        "default_next": "has_partner",
    },
    {
        "id": "has_partner",
        "prompt": "Do you have a partner? (yes/no)",
        "type": "boolean",
        "normalizer": "marital_status",
        "default_next": "chief_complaint",
    },
    {
        "id": "chief_complaint",
        "prompt": "What brings you in today?",
        "branches": {".*fertility.*": "months_ttc"},
        "default_next": None,
    },
    {
        "id": "months_ttc",
        "prompt": "How many months have you been trying to conceive?",
        "type": "count",
        "required": False,
    },
]


def build_delegates() -> Delegates:
    """Fresh set of stub delegates with neutral defaults."""
    router = SimpleNamespace(route=AsyncMock(return_value=RouteDecision(action=TurnAction.ASK)))
    extractor = SimpleNamespace(
        extract=AsyncMock(return_value=SingleExtraction(value=None, confidence=0.0))
    )
    clarifier = SimpleNamespace(clarify=AsyncMock(return_value="Could you clarify that?"))
    summarizer = SimpleNamespace(
        summarize=AsyncMock(return_value="Generated summary"),
        summarize_simple=AsyncMock(return_value="Simple summary"),
    )
    corrector = SimpleNamespace(parse=AsyncMock(return_value=[]))
    return Delegates(
        router=router,
        extractor=extractor,
        clarifier=clarifier,
        summarizer=summarizer,
        corrector=corrector,
    )


@pytest.fixture
def intake_slots() -> list[dict]:
    """Raw slot definitions of the fertility intake interview."""
    return [dict(slot) for slot in INTAKE_SLOTS]


@pytest.fixture
def slot_graph(intake_slots) -> SlotGraph:
    """Slot graph: full_name -> dob -> has_partner -> chief_complaint -> [months_ttc]."""
    return SlotGraph.from_dicts(intake_slots)


@pytest.fixture
def intake_config(intake_slots) -> AnamnesisConfig:
    """Config wrapping the intake slots with default settings."""
    return AnamnesisConfig.model_validate({"name": "fertility_intake", "slots": intake_slots})


@pytest.fixture
def delegates() -> Delegates:
    """Stub delegates (see build_delegates)."""
    return build_delegates()


@pytest.fixture
def gateway(delegates) -> DelegateGateway:
    return DelegateGateway(delegates, timeout_seconds=5.0)


@pytest.fixture
def dialogue_settings() -> DialogueConfig:
    return DialogueConfig()


@pytest.fixture
def controller(slot_graph, gateway, dialogue_settings) -> TurnController:
    return TurnController(slot_graph, gateway, dialogue_settings)


@pytest.fixture
def state() -> SessionState:
    """Fresh collecting-phase session state."""
    return SessionState()


@pytest.fixture
def filled_intake() -> dict:
    """Every slot of the intake interview answered along the fertility path."""
    return {
        "full_name": "Jane Doe",
        "dob": "01/01/1989",
        "has_partner": True,
        "chief_complaint": "fertility issues",
        "months_ttc": "6",
    }
