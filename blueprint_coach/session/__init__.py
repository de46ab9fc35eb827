# blueprint_coach/session/__init__.py
"""Session orchestration: model calls, fallback and persistence around the state machine."""

from .coach import CoachSession
from .connection import ConnectionMonitor, ConnectionStatus

__all__ = ["CoachSession", "ConnectionMonitor", "ConnectionStatus"]
