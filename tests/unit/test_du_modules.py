"""Tests for the DSPy delegate modules.

Predictors are replaced by AsyncMock stubs, so no language model is called.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from anamnesis.core.constants import Role, TurnAction
from anamnesis.core.types import CandidateExtraction, InteractionRecord
from anamnesis.du.base import validate_dspy_result
from anamnesis.du.models import (
    CorrectionList,
    MultiExtractionResult,
    RoutingVerdict,
    SingleExtraction,
    SlotCorrection,
    SlotInfo,
)
from anamnesis.du.modules import (
    ClarificationModule,
    CorrectionParserModule,
    SlotValueExtractor,
    SummaryModule,
    TurnRouterModule,
    build_dspy_delegates,
    format_transcript,
)


def predictor(**outputs):
    """Stub predictor whose acall returns a prediction with the given fields."""
    return SimpleNamespace(acall=AsyncMock(return_value=SimpleNamespace(**outputs)))


CATALOG = [SlotInfo(slot_id="full_name", prompt="What is your full name?")]


# =============================================================================
# validate_dspy_result
# =============================================================================


def test_validate_accepts_model_instance():
    # Arrange
    extraction = SingleExtraction(value="Jane", confidence=0.9)

    # Act / Assert
    assert validate_dspy_result(extraction, SingleExtraction) is extraction


def test_validate_converts_dict():
    # Act
    result = validate_dspy_result({"value": "Jane", "confidence": 0.9}, SingleExtraction)

    # Assert
    assert result == SingleExtraction(value="Jane", confidence=0.9)


def test_validate_reads_prediction_store():
    # Arrange
    prediction = SimpleNamespace(_store={"value": "Jane", "confidence": 0.8})

    # Act
    result = validate_dspy_result(prediction, SingleExtraction)

    # Assert
    assert result.confidence == 0.8


def test_validate_rejects_none_and_unknown_types():
    # Act / Assert
    with pytest.raises(TypeError):
        validate_dspy_result(None, SingleExtraction)
    with pytest.raises(TypeError):
        validate_dspy_result("not a model", SingleExtraction)


def test_validate_propagates_validation_errors():
    with pytest.raises(ValidationError):
        validate_dspy_result({"confidence": 3}, SingleExtraction)


# =============================================================================
# Modules
# =============================================================================


def test_default_reasoning_per_module():
    """Routing uses ChainOfThought by default, extraction does not"""
    # Act
    delegates = build_dspy_delegates()

    # Assert
    assert isinstance(delegates.router, TurnRouterModule)
    assert delegates.router.use_cot is True
    assert isinstance(delegates.extractor, SlotValueExtractor)
    assert delegates.extractor.use_cot is False


def test_reasoning_can_be_forced_on():
    # Act
    delegates = build_dspy_delegates(use_reasoning=True)

    # Assert
    assert delegates.extractor.use_cot is True
    assert delegates.clarifier.use_cot is True


@pytest.mark.asyncio
async def test_router_ask_skips_multi_slot_extraction():
    # Arrange
    module = TurnRouterModule(use_cot=False)
    module.extractor = predictor(result=RoutingVerdict(action=TurnAction.ASK, confidence=0.8))
    module.slot_extractor = predictor(result=MultiExtractionResult())

    # Act
    decision = await module.route("full_name", "Jane", CATALOG, {"filled_slots": {}})

    # Assert
    assert decision.action is TurnAction.ASK
    assert decision.candidate_extractions == []
    module.slot_extractor.acall.assert_not_awaited()


@pytest.mark.asyncio
async def test_router_extract_collects_candidates():
    # Arrange
    module = TurnRouterModule(use_cot=False)
    module.extractor = predictor(
        result={"action": "extract", "confidence": 0.9, "reasoning": "names given"}
    )
    candidate = CandidateExtraction(slot_id="full_name", value="Jane Doe", confidence=0.9)
    module.slot_extractor = predictor(result=MultiExtractionResult(extractions=[candidate]))

    # Act
    decision = await module.route("full_name", "I'm Jane Doe", CATALOG, {"filled_slots": {}})

    # Assert
    assert decision.action is TurnAction.EXTRACT
    assert decision.reasoning == "names given"
    assert decision.candidate_extractions == [candidate]


def test_slot_extractor_caches_per_slot_predictors():
    """One predictor per slot and prompt, reused across calls"""
    # Arrange
    module = SlotValueExtractor(cache_size=4)

    # Act
    first = module._extractor_for("dob", "What is your date of birth?")
    again = module._extractor_for("dob", "What is your date of birth?")
    other = module._extractor_for("full_name", "What is your full name?")

    # Assert
    assert first is again
    assert first is not other
    assert module._extractor_for("dob", "") is module.extractor


@pytest.mark.asyncio
async def test_slot_extractor_returns_single_extraction():
    # Arrange
    module = SlotValueExtractor()
    module.extractor = predictor(result={"value": "Jane", "confidence": 0.95})

    # Act
    result = await module.extract("full_name", "", "Jane")

    # Assert
    assert result == SingleExtraction(value="Jane", confidence=0.95)


@pytest.mark.asyncio
async def test_clarification_rejects_empty_output():
    # Arrange
    module = ClarificationModule()
    module.extractor = predictor(clarification="   ")

    # Act / Assert
    with pytest.raises(ValueError):
        await module.clarify("full_name", "uh", "What is your full name?")


@pytest.mark.asyncio
async def test_summary_module_uses_transcript():
    # Arrange
    module = SummaryModule()
    module.extractor = predictor(summary=" Patient Jane Doe. ")
    log = [
        InteractionRecord(role=Role.INTERVIEWER, text="What is your full name?"),
        InteractionRecord(role=Role.RESPONDENT, text="Jane Doe"),
    ]

    # Act
    summary = await module.summarize({"full_name": "Jane Doe"}, log, {})

    # Assert
    assert summary == "Patient Jane Doe."
    kwargs = module.extractor.acall.await_args.kwargs
    assert kwargs["conversation"] == format_transcript(log)


@pytest.mark.asyncio
async def test_simple_summary_uses_second_predictor():
    # Arrange
    module = SummaryModule()
    module.simple_extractor = predictor(summary="Jane Doe, 35")

    # Act
    summary = await module.summarize_simple({"full_name": "Jane Doe"})

    # Assert
    assert summary == "Jane Doe, 35"


@pytest.mark.asyncio
async def test_correction_parser_returns_corrections():
    # Arrange
    module = CorrectionParserModule()
    correction = SlotCorrection(slot_id="dob", new_value="1987")
    module.extractor = predictor(result=CorrectionList(corrections=[correction]))

    # Act
    corrections = await module.parse({"dob": "1989"}, "born in 1987 actually")

    # Assert
    assert corrections == [correction]


def test_format_transcript():
    # Arrange
    log = [
        InteractionRecord(role=Role.INTERVIEWER, text="Q"),
        InteractionRecord(role=Role.RESPONDENT, text="A"),
    ]

    # Act / Assert
    assert format_transcript(log) == "Interviewer: Q\n\nRespondent: A"
