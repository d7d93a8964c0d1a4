"""Review rendering.

Turns the filled slots into the human-readable summary shown in the review
phase, and derives the words a respondent may use to refer to a slot.
"""

import re

from anamnesis.core.constants import DEFAULT_APPROVAL_TOKEN
from anamnesis.core.types import FilledSlots, SlotValue
from anamnesis.graph.models import SlotDefinition, SlotGraph

REVIEW_HEADING = "### Please review your information"

STOP_WORDS = frozenset(
    {
        "what", "your", "have", "with", "this", "that", "does", "were", "when",
        "where", "which", "please", "there", "their", "about", "would", "could",
        "should", "tell", "many", "much", "been", "from", "into", "they", "them",
        "will", "ever", "currently", "today", "describe", "provide", "enter",
    }
)  # fmt: skip

MIN_WORD_LENGTH = 4


def humanize_label(prompt: str | None, slot_id: str) -> str:
    """Short label for a slot built from its question.

    Parenthesised text and a trailing question mark are removed and the first
    letter is capitalized. Falls back to the slot id.
    """
    label = re.sub(r"\(.*?\)", "", prompt or "").strip()
    if label.endswith("?"):
        label = label[:-1].rstrip()
    if not label:
        label = slot_id
    return label[0].upper() + label[1:]


def format_value(value: SlotValue) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def render_review(
    graph: SlotGraph,
    filled_slots: FilledSlots,
    approval_token: str = DEFAULT_APPROVAL_TOKEN,
) -> str:
    """Markdown review of every filled slot, in graph declaration order."""
    lines = [
        f"- **{humanize_label(slot.prompt, slot.id)}:** {format_value(filled_slots[slot.id])}"
        for slot in graph
        if slot.id in filled_slots
    ]
    return (
        f"{REVIEW_HEADING}\n\n"
        + "\n".join(lines)
        + "\n\nIf anything is wrong or out of date, just tell me "
        '(for example, "Change my birth year to 1987" or "I don\'t have a partner").'
        f"\n\nWhen everything looks good, type **{approval_token}** to finalize."
    )


def slot_words(slot: SlotDefinition) -> list[str]:
    """Words a respondent may use to refer to a slot.

    The slot id split on underscores, followed by the content words of the
    humanized prompt (stop words and words shorter than four letters removed).
    """
    words = [part for part in slot.id.lower().split("_") if part]
    label = humanize_label(slot.prompt, slot.id).lower()
    for word in re.findall(r"[a-z]+", label):
        if len(word) >= MIN_WORD_LENGTH and word not in STOP_WORDS and word not in words:
            words.append(word)
    return words
