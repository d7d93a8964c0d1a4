"""Configuration module for Anamnesis."""

from anamnesis.config.loader import ConfigLoader
from anamnesis.config.models import AnamnesisConfig
from anamnesis.config.settings import (
    DialogueConfig,
    LoggingConfig,
    ModelsConfig,
    ServerConfig,
    SettingsConfig,
)

__all__ = [
    "AnamnesisConfig",
    "ConfigLoader",
    "DialogueConfig",
    "LoggingConfig",
    "ModelsConfig",
    "ServerConfig",
    "SettingsConfig",
]
