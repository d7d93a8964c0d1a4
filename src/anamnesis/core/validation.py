"""Slot validation.

Provides a thread-safe registry of named value validators and the per-slot
validation entry point used by the merge engine.

Validation is permissive by default: missing and blank values are rejected,
booleans and empty lists (an explicit "none" answer) are always accepted, and
everything else is accepted unless the slot's rule says otherwise.

Usage:
    from anamnesis.core.validation import ValidatorRegistry, ValidationOutcome

    @ValidatorRegistry.register("postcode")
    def validate_postcode(value: Any) -> ValidationOutcome:
        ...
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING, Any

from anamnesis.core.constants import SlotType

if TYPE_CHECKING:
    from anamnesis.graph.models import SlotGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one value."""

    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> "ValidationOutcome":
        return cls(valid=True)

    @classmethod
    def fail(cls, reason: str) -> "ValidationOutcome":
        return cls(valid=False, reason=reason)


ValidatorFn = Callable[[Any], ValidationOutcome]

_validators: dict[str, ValidatorFn] = {}
_validators_lock = Lock()


class ValidatorRegistry:
    """Thread-safe registry for slot validators."""

    @classmethod
    def register(cls, name: str) -> Callable[[ValidatorFn], ValidatorFn]:
        """Register a validator function under a name referenced by slot definitions."""

        def decorator(func: ValidatorFn) -> ValidatorFn:
            with _validators_lock:
                if name in _validators:
                    logger.warning(
                        f"Validator '{name}' already registered, overwriting",
                        extra={"validator_name": name},
                    )
                _validators[name] = func
            return func

        return decorator

    @classmethod
    def get(cls, name: str) -> ValidatorFn:
        """Get validator by name.

        Raises:
            ValueError: If validator is not registered
        """
        with _validators_lock:
            if name not in _validators:
                raise ValueError(
                    f"Validator '{name}' not registered. Available: {list(_validators.keys())}"
                )
            return _validators[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        with _validators_lock:
            return name in _validators

    @classmethod
    def list_validators(cls) -> list[str]:
        with _validators_lock:
            return list(_validators.keys())

    @classmethod
    def unregister(cls, name: str) -> None:
        with _validators_lock:
            _validators.pop(name, None)


def check_present(value: Any) -> ValidationOutcome:
    """Rules shared by every slot, applied before any slot-specific rule."""
    if value is None:
        return ValidationOutcome.fail("No value provided")
    if isinstance(value, str) and value.strip() == "":
        return ValidationOutcome.fail("Empty value provided")
    return ValidationOutcome.ok()


# =============================================================================
# BUILT-IN VALIDATORS
# =============================================================================

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
DATE_PATTERN = re.compile(r"^(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{1,2}-\d{1,2}|\d{1,2}-\d{1,2}-\d{4})$")
COUNT_PATTERN = re.compile(r"^\d+$")

BOOLEAN_WORDS = frozenset({"yes", "no", "true", "false", "y", "n"})


@ValidatorRegistry.register(SlotType.TEXT.value)
def validate_text(value: Any) -> ValidationOutcome:
    if isinstance(value, str):
        return ValidationOutcome.ok()
    if isinstance(value, list):
        return validate_list(value)
    return ValidationOutcome.fail(f"Expected text, got {type(value).__name__}")


@ValidatorRegistry.register(SlotType.COUNT.value)
def validate_count(value: Any) -> ValidationOutcome:
    if isinstance(value, int) and not isinstance(value, bool):
        return ValidationOutcome.ok() if value >= 0 else ValidationOutcome.fail("Negative count")
    if isinstance(value, str) and COUNT_PATTERN.match(value.strip()):
        return ValidationOutcome.ok()
    return ValidationOutcome.fail("Expected a non-negative whole number")


@ValidatorRegistry.register(SlotType.BOOLEAN.value)
def validate_boolean(value: Any) -> ValidationOutcome:
    if isinstance(value, str) and value.strip().lower() in BOOLEAN_WORDS:
        return ValidationOutcome.ok()
    return ValidationOutcome.fail("Expected a yes/no answer")


@ValidatorRegistry.register(SlotType.EMAIL.value)
def validate_email(value: Any) -> ValidationOutcome:
    if isinstance(value, str) and EMAIL_PATTERN.match(value.strip()):
        return ValidationOutcome.ok()
    return ValidationOutcome.fail("Invalid email address")


@ValidatorRegistry.register(SlotType.PHONE.value)
def validate_phone(value: Any) -> ValidationOutcome:
    if isinstance(value, str) and PHONE_PATTERN.match(re.sub(r"[\s\-()]", "", value)):
        return ValidationOutcome.ok()
    return ValidationOutcome.fail("Invalid phone number")


@ValidatorRegistry.register(SlotType.DATE.value)
def validate_date(value: Any) -> ValidationOutcome:
    if isinstance(value, str) and DATE_PATTERN.match(value.strip()):
        return ValidationOutcome.ok()
    return ValidationOutcome.fail("Expected a date such as 1990-01-31 or 01/31/1990")


@ValidatorRegistry.register(SlotType.LIST.value)
def validate_list(value: Any) -> ValidationOutcome:
    if isinstance(value, str):
        return ValidationOutcome.ok()
    if isinstance(value, list) and all(isinstance(v, str) and v.strip() for v in value):
        return ValidationOutcome.ok()
    return ValidationOutcome.fail("Expected a list of non-empty items")


class SlotValidation:
    """Validates values against the rule of their slot.

    The rule is the slot's explicit ``validator`` if set, otherwise the rule
    registered for its ``type``.
    """

    def __init__(self, graph: "SlotGraph") -> None:
        self.graph = graph

    def validate(self, slot_id: str, value: Any) -> ValidationOutcome:
        slot = self.graph.get(slot_id)
        if slot is None:
            return ValidationOutcome.fail("Invalid slot name")

        outcome = check_present(value)
        if not outcome.valid:
            return outcome
        if isinstance(value, bool):
            return ValidationOutcome.ok()
        if isinstance(value, list) and not value:
            return ValidationOutcome.ok()

        rule_name = slot.validator or slot.type.value
        if not ValidatorRegistry.is_registered(rule_name):
            logger.warning(f"No validator '{rule_name}' for slot '{slot_id}', accepting value")
            return ValidationOutcome.ok()

        try:
            return ValidatorRegistry.get(rule_name)(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Validator '{rule_name}' raised for slot '{slot_id}': {e}")
            return ValidationOutcome.fail("Validation error occurred")
