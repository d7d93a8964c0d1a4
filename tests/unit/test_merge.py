"""Tests for the extraction merge engine."""

from datetime import date

import pytest

from anamnesis.core.constants import RejectionReason
from anamnesis.core.normalization import NormalizerRegistry
from anamnesis.core.types import CandidateExtraction
from anamnesis.dm.merge import MergeEngine
from anamnesis.graph.models import SlotGraph


@pytest.fixture
def contact_graph() -> SlotGraph:
    return SlotGraph.from_dicts(
        [
            {"id": "first_name", "prompt": "What is your first name?", "default_next": "email"},
            {"id": "email", "prompt": "What is your email?", "type": "email"},
        ]
    )


def candidate(slot_id, value, confidence):
    return CandidateExtraction(slot_id=slot_id, value=value, confidence=confidence)


def test_low_confidence_and_unknown_slot_rejected(contact_graph):
    """Only confident values for known slots are stored"""
    # Arrange
    engine = MergeEngine(contact_graph, threshold=0.7)
    candidates = [
        candidate("first_name", "Ana", 0.9),
        candidate("email", "a@x.io", 0.5),
        candidate("fake_slot", "foo", 0.95),
    ]

    # Act
    result = engine.merge(candidates)

    # Assert
    assert result.as_updates() == {"first_name": "Ana"}
    reasons = {item.slot_id: item.reason for item in result.rejected}
    assert reasons == {
        "email": RejectionReason.LOW_CONFIDENCE,
        "fake_slot": RejectionReason.UNKNOWN_SLOT,
    }
    unknown = next(item for item in result.rejected if item.slot_id == "fake_slot")
    assert unknown.detail == "Invalid slot name"


def test_every_candidate_is_accounted_for(contact_graph):
    """accepted + rejected always covers every input candidate"""
    # Arrange
    engine = MergeEngine(contact_graph)
    candidates = [
        candidate("first_name", "Ana", 0.8),
        candidate("first_name", "Anna", 0.9),
        candidate("email", "nope", 0.9),
        candidate("other", "x", 0.1),
    ]

    # Act
    result = engine.merge(candidates)

    # Assert
    assert len(result.accepted) + len(result.rejected) == len(candidates)


def test_accepted_values_meet_threshold(contact_graph):
    """No value below the threshold is ever accepted"""
    # Arrange
    engine = MergeEngine(contact_graph, threshold=0.7)
    confidences = [0.0, 0.3, 0.69, 0.7, 0.71, 1.0]
    candidates = [candidate("first_name", f"Name {i}", c) for i, c in enumerate(confidences)]

    # Act
    result = engine.merge(candidates)

    # Assert
    assert all(item.confidence >= 0.7 for item in result.accepted)
    assert result.value_for("first_name") == "Name 5"


def test_invalid_value_rejected_with_reason(contact_graph):
    # Act
    result = MergeEngine(contact_graph).merge([candidate("email", "not-an-email", 0.9)])

    # Assert
    assert result.accepted == []
    assert result.rejected[0].reason is RejectionReason.INVALID_VALUE
    assert result.rejected[0].detail == "Invalid email address"


def test_missing_value_rejected(contact_graph):
    """A confident candidate without a value is not stored"""
    # Act
    result = MergeEngine(contact_graph).merge([candidate("first_name", None, 0.95)])

    # Assert
    assert result.accepted == []
    assert result.rejected[0].reason is RejectionReason.INVALID_VALUE


def test_higher_confidence_wins_duplicate(contact_graph):
    # Arrange
    candidates = [candidate("first_name", "Ana", 0.8), candidate("first_name", "Anna", 0.95)]

    # Act
    result = MergeEngine(contact_graph).merge(candidates)

    # Assert
    assert result.value_for("first_name") == "Anna"
    assert result.rejected[0].value == "Ana"
    assert result.rejected[0].reason is RejectionReason.SUPERSEDED


def test_tie_keeps_first_candidate(contact_graph):
    # Arrange
    candidates = [candidate("first_name", "Ana", 0.9), candidate("first_name", "Anna", 0.9)]

    # Act
    result = MergeEngine(contact_graph).merge(candidates)

    # Assert
    assert result.value_for("first_name") == "Ana"
    assert result.rejected[0].value == "Anna"


def test_values_are_normalized_before_validation(slot_graph):
    """An age answer for a date slot is converted and then validated"""
    # Arrange
    engine = MergeEngine(slot_graph)

    # Act
    result = engine.merge([candidate("dob", "35 years old", 0.9)], "I am 35 years old")

    # Assert
    assert result.value_for("dob") == f"01/01/{date.today().year - 35}"


def test_normalized_boolean_is_stored(slot_graph):
    # Act
    result = MergeEngine(slot_graph).merge([candidate("has_partner", "married", 0.9)])

    # Assert
    assert result.value_for("has_partner") is True


def test_empty_candidate_list():
    # Arrange
    graph = SlotGraph.from_dicts([{"id": "a", "prompt": "A?"}])

    # Act
    result = MergeEngine(graph).merge([])

    # Assert
    assert result.accepted == []
    assert result.rejected == []


def test_filled_slots_are_locked(contact_graph):
    """Locked slots are rejected as already filled, the rest still merge"""
    # Arrange
    engine = MergeEngine(contact_graph)
    candidates = [candidate("first_name", "Someone", 0.95), candidate("email", "a@x.io", 0.9)]

    # Act
    result = engine.merge(candidates, locked={"first_name"})

    # Assert
    assert [item.slot_id for item in result.accepted] == ["email"]
    assert result.rejected[0].slot_id == "first_name"
    assert result.rejected[0].reason is RejectionReason.ALREADY_FILLED


def test_failing_normalizer_rejects_candidate():
    """A normalizer that raises turns into an invalid value, not an error"""

    # Arrange
    @NormalizerRegistry.register("failing_test")
    def normalize_failing(value, context):
        raise ValueError("cannot normalize")

    try:
        graph = SlotGraph.from_dicts([{"id": "a", "prompt": "A?", "normalizer": "failing_test"}])

        # Act
        result = MergeEngine(graph).merge([candidate("a", "x", 0.9)])
    finally:
        NormalizerRegistry.unregister("failing_test")

    # Assert
    assert result.accepted == []
    assert result.rejected[0].reason is RejectionReason.INVALID_VALUE
    assert result.rejected[0].detail == "normalization failed"
