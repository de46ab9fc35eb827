# blueprint_coach/models/blueprints.py
"""
Blueprint records and in-memory storage.

The in-memory store doubles as the local-only fallback when the persistent
store is unavailable.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from blueprint_coach.models.store import BlueprintStore

logger = logging.getLogger(__name__)

TOTAL_STEPS = 9


@dataclass
class BlueprintRecord:
    """
    Listing view of a stored blueprint.

    The full state lives in `document`; the other fields are derived from it
    at save time for cheap listing.
    """

    blueprint_id: str
    title: str
    stage: str
    progress: float
    document: dict[str, Any]
    created_at: datetime
    updated_at: datetime


def summarize_document(document: dict[str, Any]) -> tuple[str, str, float]:
    """
    Derive (title, stage, progress) from a state document.

    Tolerates partial documents: missing pieces fall back to neutral values.
    """
    handoff = document.get("handoff") or {}
    subject = handoff.get("subject") or "Untitled blueprint"
    grade = handoff.get("grade_level")
    title = f"{subject} ({grade})" if grade else subject

    stage = document.get("stage") or "onboarding"
    captured = document.get("captured") or {}
    progress = min(len(captured) / TOTAL_STEPS, 1.0)
    return title, stage, round(progress, 2)


class InMemoryBlueprintStore(BlueprintStore):
    """Simple in-memory blueprint storage for a single process."""

    def __init__(self) -> None:
        self._records: dict[str, BlueprintRecord] = {}
        logger.info("Initialized InMemoryBlueprintStore")

    async def save(self, blueprint_id: str, document: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        title, stage, progress = summarize_document(document)
        existing = self._records.get(blueprint_id)
        self._records[blueprint_id] = BlueprintRecord(
            blueprint_id=blueprint_id,
            title=title,
            stage=stage,
            progress=progress,
            document=copy.deepcopy(document),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        logger.debug(f"Saved blueprint {blueprint_id} in memory")

    async def load(self, blueprint_id: str) -> dict[str, Any] | None:
        record = self._records.get(blueprint_id)
        if record is None:
            return None
        return copy.deepcopy(record.document)

    async def list_all(self) -> list[BlueprintRecord]:
        return sorted(self._records.values(), key=lambda r: r.updated_at, reverse=True)

    async def delete(self, blueprint_id: str) -> bool:
        return self._records.pop(blueprint_id, None) is not None


def generate_blueprint_id() -> str:
    """
    Generate a unique blueprint ID.

    Returns:
        12-character hex string (UUID4 truncated)
    """
    return uuid4().hex[:12]
