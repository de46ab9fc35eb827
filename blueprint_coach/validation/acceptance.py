# blueprint_coach/validation/acceptance.py
"""
Acceptance policy for educator utterances.

The validator decides whether an answer is captured as-is, captured with a
refinement nudge, or answered with a multiple-choice clarification. It never
produces an open-ended re-ask, and after `force_accept_after` attempts any
non-blank answer is accepted so an educator can never get stuck on a step.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from blueprint_coach.config.schema import (
    DEFAULT_FORBIDDEN_PHRASES,
    ValidatorConfig,
)
from blueprint_coach.models.handoff import GradeBand, WizardHandoff
from blueprint_coach.models.steps import MIN_CHARS_MULTIPLIER, get_step, render
from blueprint_coach.validation.heuristics import check_shape, meaningful_words

logger = logging.getLogger(__name__)

PROGRESS_PHRASES = (
    "yes",
    "yeah",
    "yep",
    "yup",
    "sure",
    "ok",
    "okay",
    "good",
    "great",
    "perfect",
    "looks good",
    "sounds good",
    "that works",
    "continue",
    "next",
    "proceed",
    "let's go",
    "lets go",
    "confirm",
    "correct",
    "exactly",
    "i like it",
    "love it",
)

REFINEMENT_WORDS = (
    "actually",
    "change",
    "revise",
    "edit",
    "modify",
    "instead",
    "different",
    "rather",
    "tweak",
    "update",
    "redo",
    "alter",
    "not quite",
    "no",
)

CONTRAST_WORDS = frozenset(
    {"but", "except", "although", "though", "however", "unless", "only"}
)

# Words that may follow an affirmation without turning it into new content
PROGRESS_FILLER = frozenset(
    {
        "please", "thanks", "thank", "you", "that", "that's", "thats", "it", "it's",
        "its", "is", "this", "one", "works", "sounds", "looks", "good", "great",
        "fine", "perfect", "awesome", "let's", "lets", "go", "do", "move", "on",
        "to", "the", "next", "step", "i", "like", "love", "so", "much", "very",
        "really", "totally", "absolutely", "definitely", "all", "set", "now",
        "for", "me", "we", "are", "keep", "yes", "ok", "okay", "sure",
    }
)


class Decision(Enum):
    ACCEPT = "accept"
    ACCEPT_WITH_REFINEMENT = "accept-with-refinement"
    REJECT = "reject-request-clarification"


@dataclass
class Evaluation:
    """
    Outcome of evaluating one utterance.

    Attributes:
        decision: accept, accept-with-refinement or reject-request-clarification
        reason: Short machine-readable reason (e.g. "forced", "non-answer")
        recovery_options: Multiple-choice options; populated on reject
        refinement_hint: Populated on accept-with-refinement
    """

    decision: Decision
    reason: str
    recovery_options: list[str] = field(default_factory=list)
    refinement_hint: str | None = None

    @property
    def accepted(self) -> bool:
        return self.decision is not Decision.REJECT


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


class AcceptanceValidator:
    """
    Pure, deterministic acceptance policy.

    Example:
        validator = AcceptanceValidator()
        result = validator.evaluate("ideation.bigIdea", "Culture shapes cities", 1)
        # result.decision is Decision.ACCEPT
    """

    def __init__(self, config: ValidatorConfig | None = None):
        self.config = config or ValidatorConfig()
        self._non_answers = {_normalize(n) for n in self.config.non_answers}
        self._forbidden = [_normalize(p) for p in self.config.forbidden_phrases]

    def is_non_answer(self, text: str) -> bool:
        normalized = _normalize(text)
        if normalized in self._non_answers:
            return True
        stripped = re.sub(r"[^\w\s'?/]", "", normalized).strip()
        return stripped in self._non_answers or stripped.rstrip("?").strip() in self._non_answers

    def min_chars(self, step_key: str, band: GradeBand = GradeBand.MIDDLE) -> int:
        spec = get_step(step_key)
        return max(1, round(spec.min_chars * MIN_CHARS_MULTIPLIER[band]))

    def recovery_options(self, step_key: str, handoff: WizardHandoff | None = None) -> list[str]:
        """Two or three concrete options for a step, filled from the handoff."""
        spec = get_step(step_key)
        return [render(template, handoff) for template in spec.recovery_templates[:3]]

    def evaluate(
        self,
        step_key: str,
        utterance: str,
        attempt: int,
        handoff: WizardHandoff | None = None,
    ) -> Evaluation:
        """
        Evaluate an utterance for a step.

        Args:
            step_key: Step being answered
            utterance: Raw educator input
            attempt: 1-based attempt number within the step
            handoff: Class context for grade-band scaling and recovery options

        Returns:
            Evaluation with the decision and any recovery options or hint
        """
        spec = get_step(step_key)
        text = (utterance or "").strip()
        band = handoff.grade_band if handoff else GradeBand.MIDDLE

        if not text:
            return self._reject(step_key, "blank", handoff)

        non_answer = self.is_non_answer(text)

        if not non_answer and len(text) >= self.min_chars(step_key, band):
            if check_shape(spec.shape, text):
                return Evaluation(decision=Decision.ACCEPT, reason="meets-requirements")
            return Evaluation(
                decision=Decision.ACCEPT_WITH_REFINEMENT,
                reason=f"shape:{spec.shape}",
                refinement_hint=spec.refinement_hint,
            )

        if not non_answer and len(meaningful_words(text)) >= self.config.min_meaningful_words:
            return Evaluation(
                decision=Decision.ACCEPT_WITH_REFINEMENT,
                reason="meaningful-words",
                refinement_hint=spec.refinement_hint,
            )

        if attempt >= self.config.force_accept_after:
            logger.info(f"Force-accepting input for {step_key} on attempt {attempt}")
            return Evaluation(decision=Decision.ACCEPT, reason="forced")

        return self._reject(step_key, "non-answer" if non_answer else "too-short", handoff)

    def _reject(self, step_key: str, reason: str, handoff: WizardHandoff | None) -> Evaluation:
        return Evaluation(
            decision=Decision.REJECT,
            reason=reason,
            recovery_options=self.recovery_options(step_key, handoff),
        )

    def find_forbidden_phrase(self, text: str) -> str | None:
        """First open-ended re-ask phrase found in text, or None."""
        normalized = _normalize(text or "")
        for phrase in self._forbidden:
            if phrase in normalized:
                return phrase
        return None

    def is_constructive(self, text: str) -> bool:
        """True when text is non-blank and contains no open-ended re-ask."""
        return bool((text or "").strip()) and self.find_forbidden_phrase(text) is None


def is_progress_signal(text: str) -> bool:
    """
    Short affirmative reply such as "yes" or "looks good, thanks".

    Words after the affirmation must be filler; a contrast ("sure, but...")
    or new content ("ok make it about water") is an answer, not a signal.
    """
    normalized = re.sub(r"[^\w\s']", "", _normalize(text or "")).strip()
    if not normalized or len(normalized.split()) > 6 or is_refinement_signal(normalized):
        return False
    for phrase in sorted(PROGRESS_PHRASES, key=len, reverse=True):
        if normalized == phrase:
            return True
        if normalized.startswith(phrase + " "):
            rest = normalized[len(phrase):].split()
            if any(word in CONTRAST_WORDS for word in rest):
                return False
            return all(word in PROGRESS_FILLER or word in PROGRESS_PHRASES for word in rest)
    return False


def is_refinement_signal(text: str) -> bool:
    """Reply asking to change the candidate value ("actually...", "change it")."""
    normalized = re.sub(r"[^\w\s']", " ", _normalize(text or ""))
    return any(re.search(rf"\b{re.escape(word)}\b", normalized) for word in REFINEMENT_WORDS)


def find_forbidden_phrase(text: str) -> str | None:
    """Module-level check against the default forbidden phrase list."""
    normalized = _normalize(text or "")
    return next((p for p in DEFAULT_FORBIDDEN_PHRASES if p in normalized), None)


def is_constructive(text: str) -> bool:
    return bool((text or "").strip()) and find_forbidden_phrase(text) is None
