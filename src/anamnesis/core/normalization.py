"""Slot normalization layer.

Normalizers are declarative per-slot transforms that turn an accepted raw
value into the form that is stored. Each slot names its normalizer (or gets
the default for its type); new slot types register their own.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from threading import Lock
from typing import Any

from anamnesis.core.constants import SlotType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationContext:
    """What a normalizer may look at besides the value itself."""

    slot_id: str
    utterance: str = ""
    today: date = field(default_factory=date.today)


NormalizerFn = Callable[[Any, NormalizationContext], Any]

_normalizers: dict[str, NormalizerFn] = {}
_normalizers_lock = Lock()

DEFAULT_NORMALIZERS: dict[SlotType, str] = {
    SlotType.TEXT: "trim",
    SlotType.COUNT: "count",
    SlotType.BOOLEAN: "boolean",
    SlotType.EMAIL: "trim",
    SlotType.PHONE: "trim",
    SlotType.DATE: "trim",
    SlotType.LIST: "trim",
}


class NormalizerRegistry:
    """Thread-safe registry of named normalizers."""

    @classmethod
    def register(cls, name: str) -> Callable[[NormalizerFn], NormalizerFn]:
        def decorator(func: NormalizerFn) -> NormalizerFn:
            with _normalizers_lock:
                if name in _normalizers:
                    logger.warning(f"Normalizer '{name}' already registered, overwriting")
                _normalizers[name] = func
            return func

        return decorator

    @classmethod
    def get(cls, name: str) -> NormalizerFn:
        with _normalizers_lock:
            if name not in _normalizers:
                raise ValueError(
                    f"Normalizer '{name}' not registered. Available: {list(_normalizers.keys())}"
                )
            return _normalizers[name]

    @classmethod
    def unregister(cls, name: str) -> None:
        with _normalizers_lock:
            _normalizers.pop(name, None)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        with _normalizers_lock:
            return name in _normalizers

    @classmethod
    def list_normalizers(cls) -> list[str]:
        with _normalizers_lock:
            return list(_normalizers.keys())


# =============================================================================
# BOOLEAN INTENT
# =============================================================================

AFFIRMATIVE_TOKENS = frozenset(
    {"yes", "y", "yeah", "yep", "yup", "true", "sure", "correct", "have", "with", "married"}
)
NEGATIVE_TOKENS = frozenset(
    {"no", "n", "nope", "nah", "false", "not", "never", "none", "without", "single",
     "don't", "dont", "haven't", "havent"}
)


def classify_boolean_intent(text: str) -> bool | None:
    """Map a yes/no style answer to a boolean.

    Any negative marker makes the answer negative, so "I have no partner"
    is False even though "have" is affirmative on its own. Otherwise an
    affirmative marker makes it True. Returns None when the text carries
    no recognizable intent.
    """
    tokens = set(re.findall(r"[a-z']+", text.lower()))
    if tokens & NEGATIVE_TOKENS:
        return False
    if tokens & AFFIRMATIVE_TOKENS:
        return True
    return None


# =============================================================================
# BUILT-IN NORMALIZERS
# =============================================================================


@NormalizerRegistry.register("none")
def normalize_none(value: Any, context: NormalizationContext) -> Any:
    return value


@NormalizerRegistry.register("trim")
def normalize_trim(value: Any, context: NormalizationContext) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return [str(item).strip() for item in value]
    return value


@NormalizerRegistry.register("boolean")
def normalize_boolean(value: Any, context: NormalizationContext) -> Any:
    if isinstance(value, str):
        intent = classify_boolean_intent(value)
        if intent is not None:
            return intent
        return value.strip()
    return value


@NormalizerRegistry.register("count")
def normalize_count(value: Any, context: NormalizationContext) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        if match:
            return match.group(0)
        return value.strip()
    return value


AGE_PATTERN = re.compile(r"(\d{1,3})\s*(?:years?|yrs?)[\s-]*old", re.IGNORECASE)


@NormalizerRegistry.register("age_to_birth_year")
def normalize_age_to_birth_year(value: Any, context: NormalizationContext) -> Any:
    """Convert "35 years old" into an approximate date of birth placeholder."""
    if not isinstance(value, str):
        return value
    match = AGE_PATTERN.search(value) or AGE_PATTERN.search(context.utterance)
    if not match:
        return value.strip()
    age = int(match.group(1))
    birth_year = context.today.year - age
    logger.debug(f"Converted age {age} to birth year {birth_year} for '{context.slot_id}'")
    return f"01/01/{birth_year}"


PARTNERED_KEYWORDS = ("married", "spouse", "husband", "wife", "partner")
UNPARTNERED_KEYWORDS = (
    "single",
    "unmarried",
    "divorced",
    "widowed",
    "no partner",
    "don't have a partner",
    "do not have a partner",
)


@NormalizerRegistry.register("marital_status")
def normalize_marital_status(value: Any, context: NormalizationContext) -> Any:
    """Map a marital-status phrase onto a has-partner boolean."""
    if not isinstance(value, str):
        return value
    intent = classify_boolean_intent(value)
    if intent is not None:
        return intent
    text = f"{value} {context.utterance}".lower()
    if any(keyword in text for keyword in UNPARTNERED_KEYWORDS):
        return False
    if any(re.search(rf"\b{keyword}\b", text) for keyword in PARTNERED_KEYWORDS):
        return True
    return value.strip()


def normalize_slot_value(
    value: Any,
    context: NormalizationContext,
    slot_type: SlotType = SlotType.TEXT,
    normalizer: str | None = None,
) -> Any:
    """Run the slot's normalizer (explicit name or type default) on a value."""
    name = normalizer or DEFAULT_NORMALIZERS.get(slot_type, "none")
    fn = NormalizerRegistry.get(name)
    normalized = fn(value, context)
    if normalized != value:
        logger.debug(
            f"Normalized '{value}' -> '{normalized}' using '{name}'",
            extra={"slot_id": context.slot_id},
        )
    return normalized
