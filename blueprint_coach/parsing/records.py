# blueprint_coach/parsing/records.py
"""Typed records produced by the content parser, one model per parse kind."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Confidence = Literal["high", "medium", "low"]

PLACEHOLDER_PREFIX = "[Placeholder]"


class ParseKind(Enum):
    """Structured shapes the parser can extract."""

    PHASES = "phases"
    ACTIVITIES = "activities"
    RESOURCES = "resources"
    MILESTONES = "milestones"
    RUBRIC_CRITERIA = "rubric_criteria"
    IMPACT_DATA = "impact_data"

    @classmethod
    def _missing_(cls, value):
        # "rubric-criteria" and "impact-data" are accepted as aliases
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class PhaseItem(BaseModel):
    """A phase of the learning journey."""

    model_config = ConfigDict(extra="ignore")

    name: str
    goal: str = ""
    activities: list[str] = Field(default_factory=list)
    duration: str | None = None


class ActivityItem(BaseModel):
    """A learning activity."""

    model_config = ConfigDict(extra="ignore")

    title: str
    description: str = ""
    type: Literal["exploration", "creation", "collaboration", "presentation"] = "exploration"
    duration: str | None = None
    phase: str | None = None


class ResourceItem(BaseModel):
    """An expert, text, tool or place that sustains the work."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: Literal["article", "video", "tool", "expert", "location", "other"] = "other"
    description: str = ""
    url: str | None = None


class MilestoneItem(BaseModel):
    """A checkpoint with evidence of progress."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    due_week: int | None = None


class RubricCriterion(BaseModel):
    """One assessment criterion."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    weight: int | None = None


class ImpactData(BaseModel):
    """How student work reaches an authentic audience."""

    model_config = ConfigDict(extra="ignore")

    audience: str = ""
    method: str = ""
    timeline: str | None = None
    outcomes: list[str] = Field(default_factory=list)


RECORD_TYPES: dict[ParseKind, type[BaseModel]] = {
    ParseKind.PHASES: PhaseItem,
    ParseKind.ACTIVITIES: ActivityItem,
    ParseKind.RESOURCES: ResourceItem,
    ParseKind.MILESTONES: MilestoneItem,
    ParseKind.RUBRIC_CRITERIA: RubricCriterion,
    ParseKind.IMPACT_DATA: ImpactData,
}


@dataclass
class ParsedContent:
    """
    Result of a parse.

    Attributes:
        items: Extracted records; never empty
        confidence: high (a format strategy matched), medium (prose catch-all),
            low (padded with placeholders)
        format: Name of the strategy that produced the items
        warnings: Human-readable notes about padding or truncation
    """

    items: list[BaseModel]
    confidence: Confidence
    format: str
    warnings: list[str] = field(default_factory=list)

    @property
    def has_placeholders(self) -> bool:
        return any(is_placeholder(item) for item in self.items)

    def to_value(self) -> list[dict]:
        """Items as plain dicts, the shape stored in captured fields."""
        return [item.model_dump(mode="json") for item in self.items]


def is_placeholder(item: BaseModel) -> bool:
    for attr in ("name", "title", "audience"):
        value = getattr(item, attr, None)
        if isinstance(value, str) and value.startswith(PLACEHOLDER_PREFIX):
            return True
    return False
