# blueprint_coach/models/handoff.py
"""
Wizard handoff schema.

The onboarding wizard hands the coach a single record describing the class.
It is validated once, at state machine construction, and fails loudly when a
required field is missing instead of defaulting silently.
"""

import re
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from blueprint_coach.errors import HandoffError


class GradeBand(Enum):
    """Coarse developmental band derived from a free-text grade level."""

    EARLY = "early"
    ELEMENTARY = "elementary"
    MIDDLE = "middle"
    HIGH = "high"
    HIGHER_ED = "higher_ed"


class WizardHandoff(BaseModel):
    """Class context captured by the onboarding wizard."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    subject: str = Field(..., min_length=1, description="Subject or discipline")
    grade_level: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("grade_level", "gradeLevel"),
        description="Grade level or age group, free text",
    )
    duration: str = Field(..., min_length=1, description="Project duration, e.g. '4 weeks'")
    location: str | None = Field(default=None, description="School or community location")
    materials: list[str] = Field(
        default_factory=list, description="Available materials or constraints"
    )

    @field_validator("materials", mode="before")
    @classmethod
    def _split_materials(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [m.strip() for m in value.split(",") if m.strip()]
        return value

    @property
    def grade_band(self) -> GradeBand:
        return grade_band(self.grade_level)

    def describe(self) -> str:
        """One-line description used in pinned context and prompts."""
        parts = [
            f"Subject: {self.subject}",
            f"Grade level: {self.grade_level}",
            f"Duration: {self.duration}",
        ]
        if self.location:
            parts.append(f"Location: {self.location}")
        if self.materials:
            parts.append(f"Materials: {', '.join(self.materials)}")
        return "; ".join(parts)


def validate_handoff(data: "WizardHandoff | dict[str, Any]") -> WizardHandoff:
    """
    Validate raw wizard data into a WizardHandoff.

    Raises:
        HandoffError: If required fields are absent or empty
    """
    if isinstance(data, WizardHandoff):
        return data
    if not isinstance(data, dict):
        raise HandoffError(f"Handoff must be a mapping, got {type(data).__name__}")
    try:
        return WizardHandoff.model_validate(data)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise HandoffError(
            f"Invalid wizard handoff (fields: {', '.join(fields) or 'unknown'}): "
            f"{e.error_count()} error(s)"
        ) from e


_EARLY_WORDS = ("pre-k", "prek", "preschool", "pre-school", "kindergarten", "early", "nursery")
_HIGHER_WORDS = ("college", "university", "higher", "undergrad", "graduate", "adult", "post-secondary")


def grade_band(grade_level: str) -> GradeBand:
    """Map free-text grade levels ("3rd grade", "Grades 9-12", "K") to a band."""
    text = grade_level.lower()

    if any(word in text for word in _EARLY_WORDS) or re.search(r"\bk\b", text):
        return GradeBand.EARLY
    if any(word in text for word in _HIGHER_WORDS):
        return GradeBand.HIGHER_ED
    if "high" in text:
        return GradeBand.HIGH
    if "middle" in text:
        return GradeBand.MIDDLE
    if "elementary" in text or "primary" in text:
        return GradeBand.ELEMENTARY

    # Ranges like "6-8" use the upper bound
    numbers = [int(n) for n in re.findall(r"\d+", text)]
    if not numbers:
        return GradeBand.MIDDLE
    grade = max(numbers)
    if grade <= 2:
        return GradeBand.EARLY
    if grade <= 5:
        return GradeBand.ELEMENTARY
    if grade <= 8:
        return GradeBand.MIDDLE
    if grade <= 12:
        return GradeBand.HIGH
    return GradeBand.HIGHER_ED
