"""Command-line interface for Anamnesis."""
