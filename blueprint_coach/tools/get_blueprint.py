# blueprint_coach/tools/get_blueprint.py
"""
get_blueprint tool implementation.

Retrieves a blueprint rendered as markdown or as its raw JSON document.
"""

import json
import logging

from blueprint_coach.errors import BlueprintNotFound, InvalidInput
from blueprint_coach.export.markdown import render_blueprint_markdown
from blueprint_coach.models.responses import BlueprintContentResponse
from blueprint_coach.models.store import BlueprintStore
from blueprint_coach.validation.sanitize import sanitize_blueprint_id

logger = logging.getLogger(__name__)

VALID_FORMATS = ("markdown", "json")


async def get_blueprint(blueprint_id: str, store: BlueprintStore, format: str = "markdown") -> dict:
    """
    Retrieve a blueprint.

    Args:
        blueprint_id: Blueprint identifier
        store: Blueprint storage instance
        format: "markdown" or "json"

    Returns:
        BlueprintContentResponse as dict

    Raises:
        InvalidInput: If the format or ID is invalid
        BlueprintNotFound: If no blueprint has that ID
    """
    if format not in VALID_FORMATS:
        raise InvalidInput(
            f"Invalid format '{format}'. Must be one of: {', '.join(VALID_FORMATS)}"
        )

    sanitized_id = sanitize_blueprint_id(blueprint_id)

    document = await store.load(sanitized_id)
    if document is None:
        raise BlueprintNotFound(
            f"Blueprint '{sanitized_id}' not found. Use list to see available blueprints."
        )

    if format == "json":
        content = json.dumps(document, indent=2, ensure_ascii=False)
    else:
        content = render_blueprint_markdown(document)

    response = BlueprintContentResponse(
        blueprint_id=sanitized_id,
        format=format,
        content=content,
        complete=document.get("stage") == "complete",
    )

    logger.info(f"Retrieved blueprint {sanitized_id} as {format}")
    return response.model_dump()
