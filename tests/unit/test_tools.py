# tests/unit/test_tools.py
"""
Tests for the tool layer and markdown export.

Uses an in-memory store populated from a real state machine walk.
"""

import json

import pytest

from blueprint_coach.conversation import ConversationStateMachine
from blueprint_coach.errors import BlueprintNotFound, InvalidInput
from blueprint_coach.export import render_blueprint_markdown
from blueprint_coach.models.blueprints import InMemoryBlueprintStore
from blueprint_coach.tools import get_blueprint, list_blueprints

HANDOFF = {
    "subject": "Urban Planning",
    "gradeLevel": "9-12",
    "duration": "4 weeks",
    "location": "Chicago",
}


def _document(answers):
    machine = ConversationStateMachine(HANDOFF)
    machine.enter()
    for answer in answers:
        machine.submit(answer)
        machine.confirm()
    return machine.to_document()


class TestListBlueprints:
    """list_blueprints tool."""

    @pytest.mark.asyncio
    async def test_empty_store(self):
        result = await list_blueprints(store=InMemoryBlueprintStore())

        assert result == {"blueprints": [], "total": 0}

    @pytest.mark.asyncio
    async def test_lists_summaries(self):
        store = InMemoryBlueprintStore()
        document = _document(["Culture shapes cities"])
        await store.save(document["blueprint_id"], document)

        result = await list_blueprints(store=store)

        assert result["total"] == 1
        summary = result["blueprints"][0]
        assert summary["blueprint_id"] == document["blueprint_id"]
        assert summary["title"] == "Urban Planning (9-12)"
        assert summary["stage"] == "ideation"
        assert summary["progress"] == pytest.approx(0.11)


class TestGetBlueprint:
    """get_blueprint tool."""

    @pytest.mark.asyncio
    async def test_markdown(self):
        store = InMemoryBlueprintStore()
        document = _document(["Culture shapes cities"])
        await store.save(document["blueprint_id"], document)

        result = await get_blueprint(document["blueprint_id"], store=store)

        assert result["format"] == "markdown"
        assert result["complete"] is False
        assert "# Urban Planning (9-12)" in result["content"]
        assert "Culture shapes cities" in result["content"]

    @pytest.mark.asyncio
    async def test_json(self):
        store = InMemoryBlueprintStore()
        document = _document([])
        await store.save(document["blueprint_id"], document)

        result = await get_blueprint(document["blueprint_id"], store=store, format="json")

        assert json.loads(result["content"])["blueprint_id"] == document["blueprint_id"]

    @pytest.mark.asyncio
    async def test_invalid_format_raises(self):
        with pytest.raises(InvalidInput, match="Invalid format"):
            await get_blueprint("abc123def456", store=InMemoryBlueprintStore(), format="pdf")

    @pytest.mark.asyncio
    async def test_invalid_id_raises(self):
        with pytest.raises(InvalidInput):
            await get_blueprint("../../etc", store=InMemoryBlueprintStore())

    @pytest.mark.asyncio
    async def test_missing_raises_not_found(self):
        with pytest.raises(BlueprintNotFound):
            await get_blueprint("abc123def456", store=InMemoryBlueprintStore())


class TestMarkdownExport:
    """render_blueprint_markdown sections."""

    def test_missing_sections_marked(self):
        markdown = render_blueprint_markdown(_document([]))

        assert "## Ideation" in markdown
        assert "## Learning Journey" in markdown
        assert "## Deliverables" in markdown
        assert "_Not captured yet._" in markdown
        assert "- **Location:** Chicago" in markdown

    def test_structured_sections(self):
        document = _document([])
        document["captured"] = {
            "journey.phases": [
                {"name": "Launch", "goal": "Hook", "activities": ["Walk"], "duration": "1 week"}
            ],
            "deliverables.rubric": [{"name": "Design", "description": "Clear | bold", "weight": 40}],
            "deliverables.impact": [
                {"audience": "city council", "method": "presentation", "outcomes": ["adopted"]}
            ],
        }

        markdown = render_blueprint_markdown(document)

        assert "1. **Launch** (1 week): Hook" in markdown
        assert "   - Walk" in markdown
        assert "| Design | Clear / bold | 40% |" in markdown
        assert "- **Audience:** city council" in markdown
        assert "  - adopted" in markdown
