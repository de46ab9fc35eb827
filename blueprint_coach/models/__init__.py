# blueprint_coach/models/__init__.py
"""
Data models for blueprint-coach.

Conversation state, wizard handoff, blueprint storage and tool responses.
"""

from blueprint_coach.models.blueprints import (
    BlueprintRecord,
    InMemoryBlueprintStore,
    generate_blueprint_id,
    summarize_document,
)
from blueprint_coach.models.conversation import (
    ConversationState,
    Message,
    PendingValue,
    Role,
    Stage,
    SubPhase,
)
from blueprint_coach.models.handoff import GradeBand, WizardHandoff, grade_band, validate_handoff
from blueprint_coach.models.responses import (
    BlueprintContentResponse,
    BlueprintSummary,
    ListBlueprintsResponse,
)
from blueprint_coach.models.store import BlueprintStore

__all__ = [
    # Conversation
    "Stage",
    "SubPhase",
    "Role",
    "Message",
    "PendingValue",
    "ConversationState",
    # Handoff
    "WizardHandoff",
    "GradeBand",
    "grade_band",
    "validate_handoff",
    # Storage
    "BlueprintStore",
    "BlueprintRecord",
    "InMemoryBlueprintStore",
    "generate_blueprint_id",
    "summarize_document",
    # Responses
    "BlueprintSummary",
    "ListBlueprintsResponse",
    "BlueprintContentResponse",
]
