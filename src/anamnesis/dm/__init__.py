"""Dialogue management: turn controller, merge policy, corrections and review."""

from anamnesis.dm.controller import TurnController
from anamnesis.dm.correction import CorrectionEngine, CorrectionOutcome
from anamnesis.dm.merge import MergeEngine
from anamnesis.dm.review import format_value, humanize_label, render_review, slot_words

__all__ = [
    "CorrectionEngine",
    "CorrectionOutcome",
    "MergeEngine",
    "TurnController",
    "format_value",
    "humanize_label",
    "render_review",
    "slot_words",
]
