"""Slot graph traversal.

Walks the graph from the root along the branches selected by the filled
values and stops at the first slot that still needs an answer.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from anamnesis.core.errors import GraphCycleError
from anamnesis.core.types import FilledSlots, SlotValue
from anamnesis.graph.models import SlotGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Traversal:
    """Outcome of one walk over the slot graph."""

    next_slot: str | None
    path: tuple[str, ...]
    cycle_error: GraphCycleError | None = None

    @property
    def is_complete(self) -> bool:
        """True when every reachable slot has been answered."""
        return self.next_slot is None and self.cycle_error is None


def stringify_value(value: SlotValue) -> str:
    """Lowercase string form used for branch matching."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(str(item) for item in value).lower()
    return str(value).lower()


def match_branch(pattern: str, value: str) -> bool:
    """Test a branch pattern against a lowercase value.

    Patterns are case-insensitive regular expressions. A pattern that is not a
    valid regex matches when the value equals one of its ``|``-separated
    literal alternatives.
    """
    try:
        return re.search(pattern, value, re.IGNORECASE) is not None
    except re.error:
        options = [option.strip().lower() for option in pattern.split("|")]
        return value in options


def traverse(
    graph: SlotGraph,
    filled_slots: FilledSlots,
    skipped: Iterable[str] = (),
) -> Traversal:
    """Find the first reachable slot without a value.

    Skipped slots count as answered with an empty value, so traversal
    continues through their default transition.
    """
    skipped_ids = set(skipped)
    path: list[str] = []
    visited: set[str] = set()
    current: str | None = graph.root

    while current is not None:
        if current in visited:
            error = GraphCycleError(current, path)
            logger.error(str(error), extra={"slot_id": current, "path": path})
            return Traversal(next_slot=None, path=tuple(path), cycle_error=error)
        visited.add(current)
        path.append(current)

        if current not in filled_slots and current not in skipped_ids:
            return Traversal(next_slot=current, path=tuple(path))

        slot = graph[current]
        value = stringify_value(filled_slots[current]) if current in filled_slots else ""

        next_slot = slot.default_next
        if slot.branches and value:
            for pattern, target in slot.branches.items():
                if match_branch(pattern, value):
                    next_slot = target
                    break

        current = next_slot

    return Traversal(next_slot=None, path=tuple(path))


def next_unfilled_slot(graph: SlotGraph, filled_slots: FilledSlots) -> str | None:
    """Next slot to ask, or None when the interview path is exhausted.

    A cycle in the graph is logged and also yields None; use traverse() to
    tell the two apart.
    """
    return traverse(graph, filled_slots).next_slot


def find_cycles(graph: SlotGraph) -> list[list[str]]:
    """List every cycle reachable from the root, each closed on its first slot."""
    cycles: list[list[str]] = []
    seen_cycles: set[frozenset[str]] = set()
    done: set[str] = set()

    def visit(slot_id: str, stack: list[str]) -> None:
        if slot_id in stack:
            cycle = stack[stack.index(slot_id) :] + [slot_id]
            key = frozenset(cycle)
            if key not in seen_cycles:
                seen_cycles.add(key)
                cycles.append(cycle)
            return
        if slot_id in done:
            return
        stack.append(slot_id)
        for target in graph[slot_id].targets:
            visit(target, stack)
        stack.pop()
        done.add(slot_id)

    visit(graph.root, [])
    return cycles
