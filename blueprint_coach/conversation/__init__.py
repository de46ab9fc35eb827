# blueprint_coach/conversation/__init__.py
"""Conversation flow: state machine, context management and suggestions."""

from .context import ContextManager, ContextSummary, RelevantContext
from .machine import ConversationStateMachine, TurnResult, format_value
from .suggestions import SUGGESTION_KINDS, default_suggestions

__all__ = [
    "ConversationStateMachine",
    "TurnResult",
    "format_value",
    "ContextManager",
    "ContextSummary",
    "RelevantContext",
    "SUGGESTION_KINDS",
    "default_suggestions",
]
