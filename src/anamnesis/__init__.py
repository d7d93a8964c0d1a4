"""Anamnesis - slot-graph interview dialog engine.

Walks a declarative graph of questions, extracts structured answers from
free text with DSPy-backed delegates, and lets the respondent review and
correct the record before it is finalized.

Quick start:
    from anamnesis.config import ConfigLoader
    from anamnesis.core.dspy_service import DSPyBootstrapper
    from anamnesis.runtime import InterviewSession

    config = ConfigLoader.load("examples/fertility_intake/anamnesis.yaml")
    DSPyBootstrapper.bootstrap(config)
    session = InterviewSession.from_config(config)
    first = session.start_session()
"""

__version__ = "0.1.0"
__author__ = "Anamnesis Contributors"

__all__ = ["__version__", "__author__"]
