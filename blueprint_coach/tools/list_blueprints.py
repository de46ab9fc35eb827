# blueprint_coach/tools/list_blueprints.py
"""
list_blueprints tool implementation.

Lists stored blueprints with stage and progress.
"""

import logging

from blueprint_coach.models.responses import BlueprintSummary, ListBlueprintsResponse
from blueprint_coach.models.store import BlueprintStore

logger = logging.getLogger(__name__)


async def list_blueprints(store: BlueprintStore) -> dict:
    """
    List all blueprints, most recently updated first.

    Args:
        store: Blueprint storage instance

    Returns:
        ListBlueprintsResponse as dict
    """
    records = await store.list_all()

    summaries = []
    for record in records:
        title = record.title
        if len(title) > 80:
            title = title[:77] + "..."

        summaries.append(
            BlueprintSummary(
                blueprint_id=record.blueprint_id,
                title=title,
                stage=record.stage,
                progress=record.progress,
                updated_at=record.updated_at.isoformat(),
            )
        )

    response = ListBlueprintsResponse(blueprints=summaries, total=len(summaries))

    logger.info(f"Listed {len(summaries)} blueprints")
    return response.model_dump()
