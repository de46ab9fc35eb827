# blueprint_coach/parsing/__init__.py
"""Structured content parsing for AI and educator text."""

from blueprint_coach.parsing.json_extract import extract_json
from blueprint_coach.parsing.records import (
    PLACEHOLDER_PREFIX,
    RECORD_TYPES,
    ActivityItem,
    Confidence,
    ImpactData,
    MilestoneItem,
    ParsedContent,
    ParseKind,
    PhaseItem,
    ResourceItem,
    RubricCriterion,
    is_placeholder,
)
from blueprint_coach.parsing.service import (
    ContentParsingService,
    ParsingOptions,
    categorize_activity,
    categorize_resource,
    extract_duration,
    strip_markdown,
)

__all__ = [
    "PLACEHOLDER_PREFIX",
    "RECORD_TYPES",
    "ActivityItem",
    "Confidence",
    "ContentParsingService",
    "ImpactData",
    "MilestoneItem",
    "ParseKind",
    "ParsedContent",
    "ParsingOptions",
    "PhaseItem",
    "ResourceItem",
    "RubricCriterion",
    "categorize_activity",
    "categorize_resource",
    "extract_duration",
    "extract_json",
    "is_placeholder",
    "strip_markdown",
]
