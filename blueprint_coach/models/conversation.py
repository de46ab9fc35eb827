# blueprint_coach/models/conversation.py
"""
Conversation state models.

ConversationState is the aggregate persisted after every transition. It is
serialized with model_dump(mode="json") and restored with model_validate.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from blueprint_coach.models.handoff import WizardHandoff


class Stage(Enum):
    """Top-level stages, in order. ONBOARDING and COMPLETE are bookkeeping."""

    ONBOARDING = "onboarding"
    IDEATION = "ideation"
    JOURNEY = "journey"
    DELIVERABLES = "deliverables"
    COMPLETE = "complete"


class SubPhase(Enum):
    """Fine-grained position within a step."""

    STEP_ENTRY = "step_entry"
    STEP_CONFIRM = "step_confirm"
    STAGE_CLARIFY = "stage_clarify"
    COMPLETE = "complete"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_message_id() -> str:
    return uuid4().hex[:12]


class Message(BaseModel):
    """One entry in the append-only conversation log."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_message_id)
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_now)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def pinned(self) -> bool:
        return bool(self.metadata.get("pinned"))

    @property
    def kind(self) -> str | None:
        return self.metadata.get("kind")


class PendingValue(BaseModel):
    """Unconfirmed candidate for the current step."""

    model_config = ConfigDict(extra="ignore")

    value: Any
    raw_text: str
    confidence: Literal["high", "medium", "low"] = "high"
    format: str = "text"


class ConversationState(BaseModel):
    """Everything needed to resume a coaching session."""

    model_config = ConfigDict(extra="ignore")

    blueprint_id: str
    handoff: WizardHandoff
    stage: Stage = Stage.ONBOARDING
    step_index: int = 0
    sub_phase: SubPhase | None = None
    captured: dict[str, Any] = Field(default_factory=dict)
    messages: list[Message] = Field(default_factory=list)
    pending_value: PendingValue | None = None
    turn_count_in_step: int = 0
    draft_seed: str | None = None
    edit_return_stage: Stage | None = None  # set while re-editing a confirmed step
    suggestion_keys: dict[str, str] = Field(default_factory=dict)  # "step:kind" -> message id
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def touch(self) -> None:
        self.updated_at = _now()
