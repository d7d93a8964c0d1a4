"""Slot graph models.

The interview is a declarative table of slot definitions. Each slot names the
slot that follows it, optionally depending on the answer given, so new
interview paths are configuration rather than code.
"""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from anamnesis.core.constants import SlotType
from anamnesis.core.errors import ConfigError, UnknownSlotError
from anamnesis.core.normalization import NormalizerRegistry
from anamnesis.core.validation import ValidatorRegistry

if TYPE_CHECKING:
    from anamnesis.core.types import FilledSlots
    from anamnesis.graph.traversal import Traversal

TERMINAL_MARKERS = frozenset({"", "none", "null", "end"})


class SlotDefinition(BaseModel):
    """One question of the interview."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Unique slot key")
    prompt: str = Field(
        validation_alias=AliasChoices("prompt", "question"),
        description="Question text shown to the respondent",
    )
    required: bool = Field(default=True, description="Whether the slot must be filled")
    branches: dict[str, str] = Field(
        default_factory=dict,
        description="Ordered pattern -> next slot id, matched against the lowercase value",
    )
    default_next: str | None = Field(
        default=None,
        validation_alias=AliasChoices("default_next", "next_default"),
        description="Slot that follows when no branch matches; None is terminal",
    )
    type: SlotType = Field(default=SlotType.TEXT, description="Shape of the collected value")
    validator: str | None = Field(default=None, description="Validator name overriding the type")
    normalizer: str | None = Field(default=None, description="Normalizer name overriding the type")
    description: str = Field(default="", description="Extra guidance for extraction")

    @field_validator("default_next", mode="before")
    @classmethod
    def _terminal_marker(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in TERMINAL_MARKERS:
            return None
        return value

    @property
    def targets(self) -> list[str]:
        """Every slot id this slot can lead to, branches first."""
        targets = list(self.branches.values())
        if self.default_next is not None:
            targets.append(self.default_next)
        return targets

    def __str__(self) -> str:
        req = "required" if self.required else "optional"
        return f"- {self.id} ({self.type.value}, {req}): {self.prompt}"


class SlotGraph:
    """Read-only mapping of slot id to definition with the first slot as root."""

    def __init__(self, slots: Iterable[SlotDefinition]) -> None:
        self._slots: dict[str, SlotDefinition] = {}
        for slot in slots:
            if slot.id in self._slots:
                raise ConfigError("Duplicate slot id", slot=slot.id)
            self._slots[slot.id] = slot

        if not self._slots:
            raise ConfigError("Slot graph must declare at least one slot")

        for slot in self._slots.values():
            for target in slot.targets:
                if target not in self._slots:
                    raise ConfigError("Slot points to an unknown slot", slot=slot.id, target=target)
            if slot.normalizer and not NormalizerRegistry.is_registered(slot.normalizer):
                raise ConfigError("Unknown normalizer", slot=slot.id, normalizer=slot.normalizer)
            if slot.validator and not ValidatorRegistry.is_registered(slot.validator):
                raise ConfigError("Unknown validator", slot=slot.id, validator=slot.validator)

        self._root = next(iter(self._slots))

    @classmethod
    def from_dicts(cls, slots: Iterable[dict[str, Any]]) -> "SlotGraph":
        return cls(SlotDefinition.model_validate(data) for data in slots)

    @property
    def root(self) -> str:
        return self._root

    @property
    def ids(self) -> list[str]:
        return list(self._slots)

    def get(self, slot_id: str) -> SlotDefinition | None:
        return self._slots.get(slot_id)

    def __getitem__(self, slot_id: str) -> SlotDefinition:
        try:
            return self._slots[slot_id]
        except KeyError:
            raise UnknownSlotError("Unknown slot", slot=slot_id) from None

    def __contains__(self, slot_id: object) -> bool:
        return slot_id in self._slots

    def __iter__(self) -> Iterator[SlotDefinition]:
        return iter(self._slots.values())

    def __len__(self) -> int:
        return len(self._slots)

    def catalog(self) -> dict[str, str]:
        """Slot id -> prompt, in declaration order."""
        return {slot.id: slot.prompt for slot in self._slots.values()}

    def traverse(
        self, filled_slots: "FilledSlots", skipped: Iterable[str] = ()
    ) -> "Traversal":
        from anamnesis.graph.traversal import traverse

        return traverse(self, filled_slots, skipped)

    def next_unfilled_slot(self, filled_slots: "FilledSlots") -> str | None:
        from anamnesis.graph.traversal import next_unfilled_slot

        return next_unfilled_slot(self, filled_slots)

    def find_cycles(self) -> list[list[str]]:
        from anamnesis.graph.traversal import find_cycles

        return find_cycles(self)
