"""Observability module for Anamnesis."""

from anamnesis.observability.logging import ContextLogger, setup_logging

__all__ = ["ContextLogger", "setup_logging"]
