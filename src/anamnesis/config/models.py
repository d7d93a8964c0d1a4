"""Top-level configuration model."""

from pydantic import BaseModel, Field, field_validator

from anamnesis.config.settings import SettingsConfig
from anamnesis.graph.models import SlotDefinition, SlotGraph

SUPPORTED_VERSIONS = frozenset({"1.0"})
CURRENT_VERSION = "1.0"


class AnamnesisConfig(BaseModel):
    """Interview definition plus runtime settings.

    ``slots`` is an ordered list; the first slot is the root of the graph.
    """

    version: str = Field(default=CURRENT_VERSION, description="Config format version")
    name: str = Field(default="interview", description="Interview name")
    slots: list[SlotDefinition] = Field(min_length=1, description="Slot definitions in order")
    settings: SettingsConfig = Field(default_factory=SettingsConfig)

    @field_validator("version", mode="before")
    @classmethod
    def _check_version(cls, value: object) -> str:
        version = str(value)
        if version not in SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported config version '{version}'. Supported: {sorted(SUPPORTED_VERSIONS)}"
            )
        return version

    def build_graph(self) -> SlotGraph:
        return SlotGraph(self.slots)
