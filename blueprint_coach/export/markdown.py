# blueprint_coach/export/markdown.py
"""Markdown rendering of a blueprint document."""

from typing import Any

from blueprint_coach.models.blueprints import summarize_document
from blueprint_coach.models.steps import STEP_INDEX

_PLACEHOLDER_NOTE = "_Not captured yet._"


def _text(captured: dict[str, Any], key: str) -> str:
    value = captured.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return _PLACEHOLDER_NOTE


def _items(captured: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = captured.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _cell(value: Any) -> str:
    return str(value if value is not None else "").replace("|", "/").replace("\n", " ")


def render_blueprint_markdown(document: dict[str, Any]) -> str:
    """
    Render a state document as a markdown blueprint.

    Args:
        document: ConversationState document (from to_document())

    Returns:
        Markdown text with ideation, journey and deliverables sections
    """
    title, stage, progress = summarize_document(document)
    handoff = document.get("handoff") or {}
    captured = document.get("captured") or {}

    lines = [f"# {title}", ""]
    lines.append(f"- **Duration:** {handoff.get('duration') or 'n/a'}")
    if handoff.get("location"):
        lines.append(f"- **Location:** {handoff['location']}")
    if handoff.get("materials"):
        lines.append(f"- **Materials:** {', '.join(handoff['materials'])}")
    lines.append(f"- **Status:** {stage} ({round(progress * 100)}% complete)")
    lines.append("")

    lines += ["## Ideation", ""]
    for key in ("ideation.bigIdea", "ideation.essentialQuestion", "ideation.challenge"):
        lines += [f"### {STEP_INDEX[key].label}", "", _text(captured, key), ""]

    lines += ["## Learning Journey", "", "### Phases", ""]
    phases = _items(captured, "journey.phases")
    if not phases:
        lines += [_PLACEHOLDER_NOTE, ""]
    for number, phase in enumerate(phases, 1):
        heading = f"{number}. **{phase.get('name', 'Phase')}**"
        if phase.get("duration"):
            heading += f" ({phase['duration']})"
        if phase.get("goal"):
            heading += f": {phase['goal']}"
        lines.append(heading)
        lines.extend(f"   - {activity}" for activity in phase.get("activities") or [])
    if phases:
        lines.append("")

    lines += ["### Activities", ""]
    activities = _items(captured, "journey.activities")
    if not activities:
        lines.append(_PLACEHOLDER_NOTE)
    for activity in activities:
        entry = f"- **{activity.get('title', 'Activity')}** _{activity.get('type', 'exploration')}_"
        description = activity.get("description")
        if description and description != activity.get("title"):
            entry += f": {description}"
        lines.append(entry)
    lines.append("")

    lines += ["### Resources", ""]
    resources = _items(captured, "journey.resources")
    if not resources:
        lines.append(_PLACEHOLDER_NOTE)
    for resource in resources:
        name = resource.get("name", "Resource")
        entry = f"- [{name}]({resource['url']})" if resource.get("url") else f"- {name}"
        entry += f" ({resource.get('type', 'other')})"
        if resource.get("description"):
            entry += f": {resource['description']}"
        lines.append(entry)
    lines.append("")

    lines += ["## Deliverables", "", "### Milestones", ""]
    milestones = _items(captured, "deliverables.milestones")
    if not milestones:
        lines.append(_PLACEHOLDER_NOTE)
    for milestone in milestones:
        prefix = f"Week {milestone['due_week']}: " if milestone.get("due_week") else ""
        entry = f"- {prefix}**{milestone.get('name', 'Milestone')}**"
        if milestone.get("description"):
            entry += f": {milestone['description']}"
        lines.append(entry)
    lines.append("")

    lines += ["### Rubric", ""]
    criteria = _items(captured, "deliverables.rubric")
    if not criteria:
        lines.append(_PLACEHOLDER_NOTE)
    else:
        lines += ["| Criterion | Description | Weight |", "| --- | --- | --- |"]
        for criterion in criteria:
            weight = f"{criterion['weight']}%" if criterion.get("weight") is not None else ""
            lines.append(
                f"| {_cell(criterion.get('name'))} | {_cell(criterion.get('description'))} | {weight} |"
            )
    lines.append("")

    lines += ["### Impact", ""]
    impacts = _items(captured, "deliverables.impact")
    if not impacts:
        lines.append(_PLACEHOLDER_NOTE)
    for impact in impacts:
        lines.append(f"- **Audience:** {impact.get('audience') or 'n/a'}")
        lines.append(f"- **Method:** {impact.get('method') or 'n/a'}")
        if impact.get("timeline"):
            lines.append(f"- **Timeline:** {impact['timeline']}")
        for outcome in impact.get("outcomes") or []:
            lines.append(f"  - {outcome}")
    lines.append("")

    return "\n".join(lines)
