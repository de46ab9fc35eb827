# blueprint_coach/llm/fallback.py
"""
Offline responses for when the relay is unreachable.

Templates are keyed by action and parameterized by the class context. The
last successful model response for a key is cached and served first, so a
dropped connection degrades to recent real output before generic text.
"""

import logging

from blueprint_coach.models.handoff import WizardHandoff
from blueprint_coach.models.steps import STEP_INDEX, render

logger = logging.getLogger(__name__)

FALLBACK_TEMPLATES: dict[str, str] = {
    "coach": (
        "Let's work on the {label}: {objective}. Think about what would feel real "
        "and meaningful to {grade} students studying {subject}."
    ),
    "clarify": (
        "You're on a good track. Any of the options above would fit {subject} "
        "over {duration}; pick one or adapt it in your own words."
    ),
    "ideas": "Here are some starting points for the {label} drawn from {subject}.",
    "examples": "Here are examples other educators have used for the {label}.",
    "whatif": "Here are a few what-if scenarios to stretch the {label}.",
    "default": (
        "I'm working offline right now, but we can keep building your {subject} "
        "blueprint. Your progress is saved locally."
    ),
}


class FallbackResponder:
    """Deterministic text when the model cannot be reached."""

    def __init__(self, handoff: WizardHandoff | None = None):
        self.handoff = handoff
        self._cache: dict[str, str] = {}

    @staticmethod
    def cache_key(action: str, step_key: str | None) -> str:
        return f"{action}:{step_key or '-'}"

    def remember(self, action: str, step_key: str | None, text: str) -> None:
        if text and text.strip():
            self._cache[self.cache_key(action, step_key)] = text

    def cached(self, action: str, step_key: str | None) -> str | None:
        return self._cache.get(self.cache_key(action, step_key))

    def respond(self, action: str, step_key: str | None = None) -> str:
        """
        Text for an action on a step.

        Args:
            action: "coach", "clarify", "ideas", "examples", "whatif"
            step_key: Current step, if any

        Returns:
            Cached model text when available, otherwise a filled template
        """
        cached = self.cached(action, step_key)
        if cached is not None:
            logger.debug(f"Serving cached response for {action}:{step_key}")
            return cached

        template = FALLBACK_TEMPLATES.get(action, FALLBACK_TEMPLATES["default"])
        spec = STEP_INDEX.get(step_key or "")
        filled = template.replace("{label}", spec.label if spec else "blueprint").replace(
            "{objective}", (spec.objective if spec else "shaping the project").lower()
        )
        return render(filled, self.handoff)
