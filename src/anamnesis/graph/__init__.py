"""Slot graph: declarative interview structure and its traversal rule."""

from anamnesis.graph.models import SlotDefinition, SlotGraph
from anamnesis.graph.traversal import Traversal, find_cycles, next_unfilled_slot, traverse

__all__ = [
    "SlotDefinition",
    "SlotGraph",
    "Traversal",
    "find_cycles",
    "next_unfilled_slot",
    "traverse",
]
