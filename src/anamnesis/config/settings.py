"""Settings configuration models.

Global settings for models, dialogue policy, logging and the HTTP host.
"""

from typing import Literal

from pydantic import BaseModel, Field

from anamnesis.core.constants import (
    DEFAULT_APPROVAL_TOKEN,
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_MAX_RETRIES,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class ModelsConfig(BaseModel):
    """Language model used by the delegate capabilities."""

    provider: str = Field(default="openai", description="Model provider (openai, anthropic, etc.)")
    model: str = Field(default="gpt-4o-mini", description="Model identifier")
    temperature: float = Field(default=0.1, description="Temperature for generation")
    use_reasoning: bool = Field(default=False, description="Use ChainOfThought for reasoning")
    timeout_seconds: float = Field(
        default=30.0, gt=0, description="Time budget for a single delegate call"
    )


class DialogueConfig(BaseModel):
    """Tunable dialogue policy."""

    confidence_threshold: float = Field(
        default=DEFAULT_CONFIDENCE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for an extraction to be stored",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=1,
        description="Reprompts after which the host is told it may skip the slot",
    )
    hybrid_mode: bool = Field(
        default=True,
        description="Route each turn through the multi-slot router before single-slot extraction",
    )
    approval_token: str = Field(
        default=DEFAULT_APPROVAL_TOKEN, description="Utterance that approves the review"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO")
    json_file: str | None = Field(
        default=None, description="Rotating JSON log file; disabled when unset"
    )


class ServerConfig(BaseModel):
    """HTTP host configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    session_ttl_seconds: int = Field(default=3600, gt=0, description="Idle session lifetime")
    max_sessions: int = Field(default=1000, gt=0, description="Sessions kept in memory")


class SettingsConfig(BaseModel):
    """Global settings configuration."""

    models: ModelsConfig = Field(default_factory=ModelsConfig)
    dialogue: DialogueConfig = Field(default_factory=DialogueConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
