"""Tests for the turn controller state machine."""

from datetime import date

import pytest

from anamnesis.config.settings import DialogueConfig
from anamnesis.core.constants import Phase, TurnAction
from anamnesis.core.normalization import NormalizerRegistry
from anamnesis.core.types import (
    AlreadyComplete,
    CandidateExtraction,
    CannotProceed,
    Complete,
    NextQuestion,
    Reprompt,
    Review,
)
from anamnesis.dm.controller import TurnController, clarification_fallback
from anamnesis.dm.review import REVIEW_HEADING
from anamnesis.du.models import RouteDecision, SingleExtraction
from anamnesis.graph.models import SlotGraph


def extraction(value, confidence=0.9):
    return SingleExtraction(value=value, confidence=confidence)


# =============================================================================
# COLLECTING
# =============================================================================


@pytest.mark.asyncio
async def test_ask_path_fills_slot_and_advances(controller, state, delegates):
    """A confident single-slot extraction is stored and the next slot asked"""
    # Arrange
    delegates.extractor.extract.return_value = extraction("Jane Doe")

    # Act
    result = await controller.process_turn("full_name", "I'm Jane Doe", state)

    # Assert
    assert isinstance(result, NextQuestion)
    assert result.slot_id == "dob"
    assert result.prompt == "What is your date of birth?"
    assert state.filled_slots == {"full_name": "Jane Doe"}
    assert state.current_slot == "dob"
    assert state.interaction_count == 1
    delegates.extractor.extract.assert_awaited_once_with(
        "full_name", "What is your full name?", "I'm Jane Doe"
    )


@pytest.mark.asyncio
async def test_extract_route_fills_several_slots(controller, state, delegates):
    """Multi-slot extraction stores every accepted value and logs one pair"""
    # Arrange
    delegates.router.route.return_value = RouteDecision(
        action=TurnAction.EXTRACT,
        confidence=0.9,
        candidate_extractions=[
            CandidateExtraction(slot_id="full_name", value="Jane Doe", confidence=0.9),
            CandidateExtraction(slot_id="dob", value="1990-01-01", confidence=0.8),
            CandidateExtraction(slot_id="has_partner", value="maybe", confidence=0.5),
        ],
    )

    # Act
    result = await controller.process_turn(
        "full_name", "I'm Jane Doe, born 1990-01-01", state
    )

    # Assert
    assert isinstance(result, NextQuestion)
    assert result.slot_id == "has_partner"
    assert state.filled_slots == {"full_name": "Jane Doe", "dob": "1990-01-01"}
    assert state.interaction_count == 1
    assert state.interaction_log[-1].slot_id == "full_name"
    delegates.extractor.extract.assert_not_awaited()


@pytest.mark.asyncio
async def test_extract_route_keeps_filled_slots(controller, state, delegates):
    """During collection a filled slot is never replaced by a later extraction"""
    # Arrange
    state.fill("full_name", "Jane Doe")
    delegates.router.route.return_value = RouteDecision(
        action=TurnAction.EXTRACT,
        confidence=0.9,
        candidate_extractions=[
            CandidateExtraction(slot_id="full_name", value="Someone Else", confidence=0.95),
            CandidateExtraction(slot_id="dob", value="1990-01-01", confidence=0.9),
        ],
    )

    # Act
    result = await controller.process_turn("dob", "Someone Else, born 1990-01-01", state)

    # Assert
    assert isinstance(result, NextQuestion)
    assert result.slot_id == "has_partner"
    assert state.filled_slots == {"full_name": "Jane Doe", "dob": "1990-01-01"}


@pytest.mark.asyncio
async def test_normalizer_error_reprompts(gateway, state, delegates):
    """A normalizer that raises leads to a reprompt instead of an exception"""

    # Arrange
    @NormalizerRegistry.register("failing_turn_test")
    def normalize_failing(value, context):
        raise ValueError("cannot normalize")

    graph = SlotGraph.from_dicts([{"id": "a", "prompt": "A?", "normalizer": "failing_turn_test"}])
    controller = TurnController(graph, gateway)
    delegates.extractor.extract.return_value = extraction("x")

    try:
        # Act
        result = await controller.process_turn("a", "x", state)
    finally:
        NormalizerRegistry.unregister("failing_turn_test")

    # Assert
    assert isinstance(result, Reprompt)
    assert result.reason == "invalid_value"
    assert state.filled_slots == {}


@pytest.mark.asyncio
async def test_extract_route_with_nothing_accepted_reprompts(controller, state, delegates):
    # Arrange
    delegates.router.route.return_value = RouteDecision(
        action=TurnAction.EXTRACT,
        candidate_extractions=[
            CandidateExtraction(slot_id="fake_slot", value="foo", confidence=0.95)
        ],
    )

    # Act
    result = await controller.process_turn("full_name", "foo", state)

    # Assert
    assert isinstance(result, Reprompt)
    assert result.reason == "no_valid_extraction"
    assert state.filled_slots == {}


@pytest.mark.asyncio
async def test_clarify_route_reprompts(controller, state, delegates):
    # Arrange
    delegates.router.route.return_value = RouteDecision(action=TurnAction.CLARIFY)

    # Act
    result = await controller.process_turn("full_name", "why do you need that?", state)

    # Assert
    assert isinstance(result, Reprompt)
    assert result.reason == "clarification_needed"
    assert result.message == "Could you clarify that?"


@pytest.mark.asyncio
async def test_low_confidence_reprompts_and_counts_attempts(controller, state, delegates):
    """Below-threshold answers are never stored; retries are counted"""
    # Arrange
    delegates.extractor.extract.return_value = extraction("Jane?", confidence=0.4)

    # Act
    first = await controller.process_turn("full_name", "uh", state)
    second = await controller.process_turn("full_name", "hmm", state)

    # Assert
    assert isinstance(first, Reprompt)
    assert first.reason == "low_confidence"
    assert first.attempts == 1
    assert not first.skip_suggested
    assert second.attempts == 2
    assert second.skip_suggested
    assert state.filled_slots == {}
    assert state.interaction_count == 2


@pytest.mark.asyncio
async def test_no_value_reprompts(controller, state):
    """The default stub finds no value"""
    # Act
    result = await controller.process_turn("full_name", "I'd rather not say", state)

    # Assert
    assert isinstance(result, Reprompt)
    assert result.reason == "low_confidence"
    assert state.interaction_log[-1].extracted_value is None


@pytest.mark.asyncio
async def test_invalid_value_reprompts_with_reason(controller, state, delegates):
    # Arrange
    state.fill("full_name", "Jane Doe")
    delegates.extractor.extract.return_value = extraction("sometime in spring")

    # Act
    result = await controller.process_turn("dob", "sometime in spring", state)

    # Assert
    assert isinstance(result, Reprompt)
    assert result.reason == "invalid_value"
    assert "dob" not in state.filled_slots


@pytest.mark.asyncio
async def test_clarification_failure_uses_fallback_text(controller, state, delegates):
    # Arrange
    delegates.clarifier.clarify.side_effect = RuntimeError("LM unavailable")

    # Act
    result = await controller.process_turn("full_name", "uh", state)

    # Assert
    assert isinstance(result, Reprompt)
    assert result.message == clarification_fallback("What is your full name?")
    assert result.message == "Could you provide more details about: What is your full name?"


@pytest.mark.asyncio
async def test_router_failure_falls_back_to_ask(controller, state, delegates):
    """A failing router never blocks the turn"""
    # Arrange
    delegates.router.route.side_effect = RuntimeError("LM unavailable")
    delegates.extractor.extract.return_value = extraction("Jane Doe")

    # Act
    result = await controller.process_turn("full_name", "Jane Doe", state)

    # Assert
    assert isinstance(result, NextQuestion)
    assert state.filled_slots["full_name"] == "Jane Doe"


@pytest.mark.asyncio
async def test_extractor_failure_reprompts(controller, state, delegates):
    # Arrange
    delegates.extractor.extract.side_effect = RuntimeError("LM unavailable")

    # Act
    result = await controller.process_turn("full_name", "Jane Doe", state)

    # Assert
    assert isinstance(result, Reprompt)
    assert result.reason == "extraction_failed"


@pytest.mark.asyncio
async def test_hybrid_mode_off_skips_router(slot_graph, gateway, state, delegates):
    # Arrange
    controller = TurnController(slot_graph, gateway, DialogueConfig(hybrid_mode=False))
    delegates.extractor.extract.return_value = extraction("Jane Doe")

    # Act
    await controller.process_turn("full_name", "Jane Doe", state)

    # Assert
    delegates.router.route.assert_not_awaited()
    assert state.filled_slots["full_name"] == "Jane Doe"


@pytest.mark.asyncio
async def test_yes_shortcut_skips_extraction(controller, state, delegates):
    """A bare "yes" for a boolean slot is resolved locally"""
    # Arrange
    state.fill_many({"full_name": "Jane Doe", "dob": "01/01/1989"})

    # Act
    result = await controller.process_turn("has_partner", "Yes", state)

    # Assert
    assert isinstance(result, NextQuestion)
    assert result.slot_id == "chief_complaint"
    assert state.filled_slots["has_partner"] is True
    delegates.extractor.extract.assert_not_awaited()


def test_preprocess_matches_literal_branch_alternative():
    # Arrange
    graph = SlotGraph.from_dicts(
        [
            {
                "id": "trying",
                "prompt": "Are you trying to conceive?",
                "branches": {"yes|trying": "months"},
                "default_next": "end",
            },
            {"id": "months", "prompt": "How many months?"},
        ]
    )

    # Act
    candidate = TurnController.preprocess(graph["trying"], " Trying ")

    # Assert
    assert candidate is not None
    assert candidate.value == "yes"
    assert candidate.confidence == 1.0


def test_preprocess_leaves_free_text_to_delegates(slot_graph):
    assert TurnController.preprocess(slot_graph["full_name"], "Jane Doe") is None


@pytest.mark.asyncio
async def test_age_answer_converted_for_dob(controller, state, delegates):
    # Arrange
    state.fill("full_name", "Jane Doe")
    delegates.extractor.extract.return_value = extraction("35")

    # Act
    result = await controller.process_turn("dob", "I'm 35 years old", state)

    # Assert
    assert isinstance(result, NextQuestion)
    assert state.filled_slots["dob"] == f"01/01/{date.today().year - 35}"


@pytest.mark.asyncio
async def test_unknown_slot_cannot_proceed(controller, state):
    # Act
    result = await controller.process_turn("favorite_color", "blue", state)

    # Assert
    assert isinstance(result, CannotProceed)
    assert result.reason == "unknown_slot"


@pytest.mark.asyncio
async def test_last_slot_enters_review(controller, state, delegates, filled_intake):
    """Filling the last reachable slot switches to the review phase"""
    # Arrange
    filled = dict(filled_intake)
    del filled["months_ttc"]
    state.fill_many(filled)
    delegates.extractor.extract.return_value = extraction("about 6 months")

    # Act
    result = await controller.process_turn("months_ttc", "about 6 months", state)

    # Assert
    assert isinstance(result, Review)
    assert result.summary.startswith(REVIEW_HEADING)
    assert state.phase is Phase.REVIEW
    assert state.filled_slots["months_ttc"] == "6"
    assert state.current_slot is None


def test_advance_reports_cycles(gateway, state):
    # Arrange
    graph = SlotGraph.from_dicts(
        [
            {"id": "a", "prompt": "A?", "default_next": "b"},
            {"id": "b", "prompt": "B?", "default_next": "a"},
        ]
    )
    controller = TurnController(graph, gateway)
    state.fill_many({"a": "x", "b": "y"})

    # Act
    result = controller.advance(state)

    # Assert
    assert isinstance(result, CannotProceed)
    assert result.reason == "graph_cycle"


# =============================================================================
# REVIEW
# =============================================================================


@pytest.fixture
def review_state(state, filled_intake):
    state.fill_many(filled_intake)
    state.phase = Phase.REVIEW
    return state


@pytest.mark.asyncio
async def test_approval_completes_with_summary(controller, review_state, delegates):
    # Act
    result = await controller.process_turn(None, "  Approved ", review_state)

    # Assert
    assert isinstance(result, Complete)
    assert result.summary == "Generated summary"
    assert review_state.phase is Phase.COMPLETE
    assert review_state.interaction_count == 1
    delegates.summarizer.summarize.assert_awaited_once()


@pytest.mark.asyncio
async def test_summary_falls_back_to_simple_summary(controller, review_state, delegates):
    # Arrange
    delegates.summarizer.summarize.side_effect = RuntimeError("LM unavailable")

    # Act
    result = await controller.process_turn(None, "approved", review_state)

    # Assert
    assert result.summary == "Simple summary"


@pytest.mark.asyncio
async def test_summary_falls_back_to_review_text(controller, review_state, delegates):
    """With both summary delegates down the review text is the summary"""
    # Arrange
    delegates.summarizer.summarize.side_effect = RuntimeError("LM unavailable")
    delegates.summarizer.summarize_simple.return_value = "   "

    # Act
    result = await controller.process_turn(None, "approved", review_state)

    # Assert
    assert isinstance(result, Complete)
    assert result.summary.startswith(REVIEW_HEADING)


@pytest.mark.asyncio
async def test_review_message_routes_to_corrections(controller, review_state):
    # Act
    result = await controller.process_turn(None, "change my birth year to 1987", review_state)

    # Assert
    assert isinstance(result, Review)
    assert "1987" in result.summary
    assert review_state.phase is Phase.REVIEW


@pytest.mark.asyncio
async def test_turn_after_completion_changes_nothing(controller, review_state):
    # Arrange
    await controller.process_turn(None, "approved", review_state)
    filled_before = dict(review_state.filled_slots)
    count_before = review_state.interaction_count

    # Act
    result = await controller.process_turn("full_name", "change my name to Bob", review_state)

    # Assert
    assert isinstance(result, AlreadyComplete)
    assert review_state.filled_slots == filled_before
    assert review_state.interaction_count == count_before
