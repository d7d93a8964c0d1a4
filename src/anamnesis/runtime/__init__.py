"""Runtime: host-facing interview sessions."""

from anamnesis.runtime.session import InterviewSession

__all__ = ["InterviewSession"]
