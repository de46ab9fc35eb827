# tests/unit/test_parsing.py
"""
Tests for ContentParsingService.

Covers each parse kind's format strategies, placeholder padding, and the
guarantee that parse() never raises and never returns an empty item list.
"""

import pytest

from blueprint_coach.parsing import (
    PLACEHOLDER_PREFIX,
    ContentParsingService,
    ParseKind,
    ParsingOptions,
    extract_duration,
    is_placeholder,
    strip_markdown,
)


@pytest.fixture
def service():
    return ContentParsingService()


class TestTotality:
    """parse() handles any input without raising."""

    @pytest.mark.parametrize("kind", [k.value for k in ParseKind])
    def test_empty_input_returns_single_placeholder(self, service, kind):
        result = service.parse(kind, "")

        assert len(result.items) == 1
        assert result.confidence == "low"
        assert result.format == "placeholder"
        assert is_placeholder(result.items[0])

    @pytest.mark.parametrize("kind", [k.value for k in ParseKind])
    def test_whitespace_input_returns_placeholder(self, service, kind):
        result = service.parse(kind, "   \n\t  \n")

        assert len(result.items) == 1
        assert result.confidence == "low"

    @pytest.mark.parametrize("kind", [k.value for k in ParseKind])
    def test_very_long_input_is_truncated_not_rejected(self, service, kind):
        result = service.parse(kind, "word " * 10_000)

        assert len(result.items) >= 1
        assert any("truncated" in w for w in result.warnings)

    def test_markdown_only_input_is_treated_as_empty(self, service):
        result = service.parse("phases", "**  **\n```\n```\n---")

        assert result.format == "placeholder"
        assert result.items[0].name.startswith(PLACEHOLDER_PREFIX)

    def test_unknown_kind_raises_value_error(self, service):
        with pytest.raises(ValueError):
            service.parse("lesson_plans", "anything")

    @pytest.mark.parametrize(
        "kind, expected",
        [
            ("rubric-criteria", ParseKind.RUBRIC_CRITERIA),
            ("impact-data", ParseKind.IMPACT_DATA),
            ("Rubric-Criteria", ParseKind.RUBRIC_CRITERIA),
        ],
    )
    def test_hyphenated_kind_names_accepted(self, service, kind, expected):
        assert ParseKind(kind) is expected

        result = service.parse(kind, "- Research\n- Design")

        assert len(result.items) >= 1


class TestPhases:
    """Phase extraction strategies."""

    def test_phase_header_with_bullets(self, service):
        result = service.parse("phases", "Phase 1: Launch\n- Research\n- Interview")

        assert result.format == "phase-with-bullets"
        assert result.confidence == "high"
        assert len(result.items) == 1
        assert result.items[0].name == "Launch"
        assert result.items[0].activities == ["Research", "Interview"]

    def test_json_object_with_phases_key(self, service):
        raw = (
            '{"phases": [{"name": "Launch", "goal": "Hook", "activities": ["Walk"]},'
            ' {"name": "Build"}]}'
        )
        result = service.parse(ParseKind.PHASES, raw)

        assert result.format == "json"
        assert result.confidence == "high"
        assert [p.name for p in result.items] == ["Launch", "Build"]
        assert result.items[0].goal == "Hook"
        assert result.items[0].activities == ["Walk"]

    def test_json_inside_code_fence(self, service):
        result = service.parse("phases", '```json\n[{"title": "Launch"}]\n```')

        assert result.format == "json"
        assert result.items[0].name == "Launch"

    def test_numbered_list(self, service):
        raw = "1. Discover: explore the neighborhood\n2. Design: build models\n3. Share"
        result = service.parse("phases", raw)

        assert result.format == "numbered-list"
        assert [p.name for p in result.items] == ["Discover", "Design", "Share"]
        assert result.items[0].goal == "explore the neighborhood"
        assert result.items[0].activities == ["explore the neighborhood"]
        assert result.items[2].goal == ""

    def test_line_delimited(self, service):
        result = service.parse("phases", "Launch\nInvestigate\nShowcase")

        assert result.format == "line-delimited"
        assert [p.name for p in result.items] == ["Launch", "Investigate", "Showcase"]

    def test_single_paragraph_is_medium_confidence(self, service):
        raw = (
            "Students begin by exploring the history of their neighborhood "
            "and then design a walking tour."
        )
        result = service.parse("phases", raw)

        assert result.format == "paragraph"
        assert result.confidence == "medium"
        assert result.items[0].name == "Students begin by exploring the history"

    def test_pads_with_placeholders_below_minimum(self, service):
        options = ParsingOptions(min_items={ParseKind.PHASES: 3})
        result = service.parse("phases", "Phase 1: Launch\n- Research", options)

        assert result.confidence == "low"
        assert len(result.items) == 3
        assert result.has_placeholders
        assert result.items[-1].name.startswith(PLACEHOLDER_PREFIX)
        assert result.format.endswith("+placeholder")


class TestActivities:
    """Activity extraction and categorization."""

    def test_bullet_list_with_types(self, service):
        raw = (
            "- Research: compare neighborhoods\n"
            "- Build a model of the city\n"
            "- Present to council"
        )
        result = service.parse("activities", raw)

        assert result.format == "bullet-list"
        assert [a.title for a in result.items] == [
            "Research",
            "Build a model of the city",
            "Present to council",
        ]
        assert [a.type for a in result.items] == ["exploration", "creation", "presentation"]
        assert result.items[0].description == "compare neighborhoods"

    def test_milestone_lines_are_skipped(self, service):
        result = service.parse("activities", "- Research the topic\n- Milestone: draft due")

        assert len(result.items) == 1
        assert result.items[0].title == "Research the topic"


class TestResources:
    """Resource extraction."""

    def test_bullets_with_type_and_url(self, service):
        raw = (
            "- Guest speaker: local architect\n"
            "- Neighborhood documentary https://youtube.com/watch?v=abc"
        )
        result = service.parse("resources", raw)

        assert result.format == "bullet-list"
        speaker, video = result.items
        assert speaker.name == "Guest speaker"
        assert speaker.description == "local architect"
        assert speaker.type == "expert"
        assert video.name == "Neighborhood documentary"
        assert video.url == "https://youtube.com/watch?v=abc"
        assert video.type == "video"


class TestMilestones:
    """Milestone extraction."""

    def test_week_labels_set_due_week(self, service):
        result = service.parse(
            "milestones", "Week 1: Research plan\nWeek 3: Prototype - peer feedback"
        )

        assert result.format == "week-labeled"
        assert [m.due_week for m in result.items] == [1, 3]
        assert result.items[0].name == "Research plan"
        assert result.items[1].name == "Prototype"
        assert result.items[1].description == "peer feedback"


class TestRubric:
    """Rubric criteria extraction."""

    def test_markdown_table(self, service):
        raw = (
            "| Criterion | Description | Weight |\n"
            "| --- | --- | --- |\n"
            "| Research | Uses evidence | 40% |\n"
            "| Design | Clear model | 60% |"
        )
        result = service.parse("rubric_criteria", raw)

        assert result.format == "table"
        assert [c.name for c in result.items] == ["Research", "Design"]
        assert [c.weight for c in result.items] == [40, 60]
        assert result.items[0].description == "Uses evidence"

    def test_bullets_with_optional_weight(self, service):
        result = service.parse("rubric_criteria", "- Collaboration (25%)\n- Creativity: original ideas")

        assert result.format == "bullet-list"
        assert result.items[0].name == "Collaboration"
        assert result.items[0].weight == 25
        assert result.items[1].name == "Creativity"
        assert result.items[1].description == "original ideas"
        assert result.items[1].weight is None

    def test_unstructured_text_falls_back_to_default_criteria(self, service):
        result = service.parse("rubric_criteria", "We will see how it goes")

        assert result.confidence == "low"
        assert result.items[0].name == f"{PLACEHOLDER_PREFIX} Content Understanding"
        assert result.items[0].weight == 25


class TestImpact:
    """Impact extraction."""

    def test_labeled_fields(self, service):
        raw = (
            "Audience: city council\n"
            "Method: public presentation\n"
            "Timeline: week 4\n"
            "Outcomes: adopted proposal, press coverage"
        )
        result = service.parse("impact_data", raw)

        assert result.format == "labeled-fields"
        impact = result.items[0]
        assert impact.audience == "city council"
        assert impact.method == "public presentation"
        assert impact.timeline == "week 4"
        assert impact.outcomes == ["adopted proposal", "press coverage"]

    def test_prose_detects_audience(self, service):
        raw = "Students will present their proposals to the local council at the end of term."
        result = service.parse("impact_data", raw)

        assert result.format == "prose"
        assert result.confidence == "medium"
        assert result.items[0].audience == "local council"


class TestHelpers:
    """Text cleanup and option extraction."""

    def test_clean_text_strips_quotes_and_markdown(self, service):
        assert service.clean_text('"Culture shapes cities"') == "Culture shapes cities"
        assert service.clean_text("**Culture**  shapes\ncities") == "Culture shapes cities"

    def test_parse_options_limits_count(self, service):
        options = service.parse_options("1. Alpha\n2. Beta\n3. Gamma\n4. Delta", limit=3)

        assert options == ["Alpha", "Beta", "Gamma"]

    def test_extract_duration(self):
        assert extract_duration("over 3 weeks of fieldwork") == "3 weeks"
        assert extract_duration("no time given") is None

    def test_strip_markdown_keeps_list_markers(self):
        assert strip_markdown("## Plan\n* **Launch** day") == "Plan\n- Launch day"

    def test_to_value_returns_plain_dicts(self, service):
        value = service.parse("phases", "Phase 1: Launch\n- Research").to_value()

        assert value == [
            {"name": "Launch", "goal": "", "activities": ["Research"], "duration": None}
        ]
