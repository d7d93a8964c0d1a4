"""Delegate understanding layer: LM-backed capabilities behind narrow interfaces."""

from anamnesis.du.gateway import DelegateGateway
from anamnesis.du.interfaces import (
    ClarificationGenerator,
    CorrectionParser,
    Delegates,
    SingleSlotExtractor,
    SummaryGenerator,
    TurnRouter,
)
from anamnesis.du.models import (
    RouteDecision,
    RoutingVerdict,
    SingleExtraction,
    SlotCorrection,
    SlotInfo,
)

__all__ = [
    "ClarificationGenerator",
    "CorrectionParser",
    "DelegateGateway",
    "Delegates",
    "RouteDecision",
    "RoutingVerdict",
    "SingleExtraction",
    "SingleSlotExtractor",
    "SlotCorrection",
    "SlotInfo",
    "SummaryGenerator",
    "TurnRouter",
]
