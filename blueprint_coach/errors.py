# blueprint_coach/errors.py
"""
Exception types for blueprint-coach.

Only InvalidTransition, PersistenceUnavailable and HandoffError reach calling
code. Rejected input and low-confidence parses are decisions carried in return
values, not exceptions.
"""


class CoachError(Exception):
    """Base class for all blueprint-coach errors."""


class InvalidTransition(CoachError):
    """An operation was invoked in a sub-phase where it is not legal."""

    def __init__(self, operation: str, sub_phase: str | None, detail: str = ""):
        self.operation = operation
        self.sub_phase = sub_phase
        message = f"Cannot {operation}() while in sub-phase '{sub_phase}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class HandoffError(CoachError):
    """Wizard handoff data is missing required fields or malformed."""


class PersistenceUnavailable(CoachError):
    """The blueprint store could not save or load a document."""


class UpstreamUnavailable(CoachError):
    """The LLM relay failed, timed out, or kept rate-limiting after retries."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class InvalidInput(CoachError):
    """A tool or CLI argument failed validation (e.g. a malformed blueprint id)."""


class BlueprintNotFound(CoachError):
    """No stored blueprint has the requested ID."""
