"""DSPy Configuration Service.

Handles bootstrapping DSPy with the language model settings from AnamnesisConfig.
"""

import logging

import dspy

from anamnesis.config import AnamnesisConfig

logger = logging.getLogger(__name__)


class DSPyBootstrapper:
    """Bootstrapper for DSPy configuration."""

    def __init__(self, config: AnamnesisConfig):
        self.config = config

    @staticmethod
    def bootstrap(config: AnamnesisConfig) -> dspy.LM:
        """Static helper to bootstrap DSPy from config."""
        bootstrapper = DSPyBootstrapper(config)
        return bootstrapper.configure()

    def configure(self) -> dspy.LM:
        """Configure DSPy with the settings from config."""
        models = self.config.settings.models
        provider = models.provider or "openai"

        # dspy.LM("provider/model") format; unknown providers are passed through to LiteLLM
        lm = dspy.LM(f"{provider}/{models.model}", temperature=models.temperature)
        dspy.configure(lm=lm)
        logger.info(f"DSPy configured with {provider}/{models.model}")
        return lm
