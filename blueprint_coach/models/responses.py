# blueprint_coach/models/responses.py
"""
Pydantic response models for the tool layer.

The CLI and any embedding UI consume these as plain dicts via model_dump().
"""

from pydantic import BaseModel, Field


class BlueprintSummary(BaseModel):
    """Summary of a blueprint for list views."""

    blueprint_id: str = Field(description="Blueprint identifier")
    title: str = Field(description="Subject and grade level")
    stage: str = Field(description="Current stage")
    progress: float = Field(ge=0.0, le=1.0, description="Fraction of steps confirmed")
    updated_at: str = Field(description="ISO timestamp of the last save")


class ListBlueprintsResponse(BaseModel):
    """Response from list_blueprints."""

    blueprints: list[BlueprintSummary] = Field(default_factory=list)
    total: int = Field(description="Total number of blueprints")


class BlueprintContentResponse(BaseModel):
    """Response from get_blueprint."""

    blueprint_id: str = Field(description="Blueprint identifier")
    format: str = Field(description="Response format (markdown/json)")
    content: str = Field(description="Blueprint content in requested format")
    complete: bool = Field(description="Whether every stage has been finished")
