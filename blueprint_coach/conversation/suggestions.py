# blueprint_coach/conversation/suggestions.py
"""Deterministic suggestion templates used when no model output is supplied."""

from typing import Any, Literal

from blueprint_coach.models.handoff import WizardHandoff
from blueprint_coach.models.steps import StepSpec, render

SuggestionKind = Literal["ideas", "examples", "whatif"]

SUGGESTION_KINDS: tuple[str, ...] = ("ideas", "examples", "whatif")

KIND_LABELS: dict[str, str] = {
    "ideas": "Here are a few ideas",
    "examples": "Here are some examples",
    "whatif": "A few what-if scenarios to stretch the thinking",
}

WHAT_IF_TEMPLATES: tuple[str, ...] = (
    "What if students worked on {subject} the way professionals do, alongside real experts in our {place}?",
    "What if the final work had to be genuinely useful to someone outside the classroom?",
    "What if students chose their own angle on {subject} and pitched it to the class in the first week?",
)


def _dedupe(options: list[str], limit: int) -> list[str]:
    seen: set[str] = set()
    unique = []
    for option in options:
        key = option.strip().lower()
        if key and key not in seen:
            seen.add(key)
            unique.append(option.strip())
    return unique[:limit]


def default_suggestions(
    kind: str,
    spec: StepSpec,
    handoff: WizardHandoff | None,
    captured: dict[str, Any] | None = None,
    limit: int = 3,
) -> list[str]:
    """
    Suggestions for a step built from the step table and the handoff.

    Args:
        kind: "ideas", "examples" or "whatif"
        spec: Step being worked on
        handoff: Class context used to fill templates
        captured: Captured fields; a Big Idea personalizes what-if prompts
        limit: Maximum number of options

    Returns:
        Between one and `limit` distinct options
    """
    if kind == "examples":
        options = [render(t, handoff) for t in spec.examples]
        options += [render(t, handoff) for t in spec.recovery_templates]
    elif kind == "whatif":
        options = []
        big_idea = (captured or {}).get("ideation.bigIdea")
        if isinstance(big_idea, str) and big_idea:
            options.append(f"What if '{big_idea}' became the lens for every part of the {spec.label}?")
        options += [render(t, handoff) for t in WHAT_IF_TEMPLATES]
    else:
        options = [render(t, handoff) for t in spec.recovery_templates]
        options += [render(t, handoff) for t in spec.examples]
    return _dedupe(options, limit)


def format_suggestions(kind: str, spec: StepSpec, options: list[str]) -> str:
    """Numbered message text for a list of options."""
    header = f"{KIND_LABELS.get(kind, 'Some options')} for the {spec.label}:"
    body = "\n".join(f"{i}. {option}" for i, option in enumerate(options, 1))
    return f"{header}\n{body}\nReply with a number to use one, or adapt it in your own words."
