"""Config loader for YAML configuration files."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from anamnesis.config.models import AnamnesisConfig
from anamnesis.core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAMES = ("anamnesis.yaml", "config.yaml")


class ConfigLoader:
    """Load AnamnesisConfig from YAML files."""

    @staticmethod
    def load(path: Path | str) -> AnamnesisConfig:
        """Load configuration from a YAML file or a config directory.

        A directory resolves to ``anamnesis.yaml`` (or ``config.yaml``) when
        present, otherwise every ``*.yaml`` file in it is merged in name order:
        slot lists are concatenated and settings sections are merged.

        Raises:
            ConfigError: If no file is found or the content is invalid
        """
        config_path = Path(path)
        data = ConfigLoader._read(config_path)

        try:
            return AnamnesisConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(
                "Invalid configuration", path=str(config_path), errors=e.error_count()
            ) from e

    @staticmethod
    def _read(config_path: Path) -> dict[str, Any]:
        if not config_path.is_dir():
            if not config_path.exists():
                raise ConfigError("Config file not found", path=str(config_path))
            return ConfigLoader._read_file(config_path)

        for name in DEFAULT_CONFIG_NAMES:
            candidate = config_path / name
            if candidate.exists():
                return ConfigLoader._read_file(candidate)

        files = sorted(config_path.glob("*.yaml"))
        if not files:
            raise ConfigError("No config files found", path=str(config_path))

        data: dict[str, Any] = {"slots": [], "settings": {}}
        for fpath in files:
            chunk = ConfigLoader._read_file(fpath)

            if isinstance(chunk.get("slots"), list):
                data["slots"].extend(chunk["slots"])

            if isinstance(chunk.get("settings"), dict):
                data["settings"].update(chunk["settings"])

            for key, value in chunk.items():
                if key not in ("slots", "settings"):
                    data[key] = value

        return data

    @staticmethod
    def _read_file(path: Path) -> dict[str, Any]:
        logger.debug(f"Reading config file {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError("Config file is not valid YAML", path=str(path)) from e
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping", path=str(path))
        return data
