# blueprint_coach/validation/__init__.py
"""Input validation, acceptance policy and sanitization utilities."""

from .acceptance import (
    AcceptanceValidator,
    Decision,
    Evaluation,
    find_forbidden_phrase,
    is_constructive,
    is_progress_signal,
    is_refinement_signal,
)
from .heuristics import check_shape, count_list_items, meaningful_words
from .sanitize import sanitize_blueprint_id, sanitize_utterance

__all__ = [
    "AcceptanceValidator",
    "Decision",
    "Evaluation",
    "find_forbidden_phrase",
    "is_constructive",
    "is_progress_signal",
    "is_refinement_signal",
    "check_shape",
    "count_list_items",
    "meaningful_words",
    "sanitize_blueprint_id",
    "sanitize_utterance",
]
