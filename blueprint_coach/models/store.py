# blueprint_coach/models/store.py
"""
Blueprint store protocol definition.

Defines the abstract interface that both InMemoryBlueprintStore and
SQLiteBlueprintStore implement.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from blueprint_coach.models.blueprints import BlueprintRecord


class BlueprintStore(ABC):
    """
    Abstract base class for blueprint storage implementations.

    A store holds one JSON document per blueprint. Writes are last-write-wins;
    each document is owned by a single session.
    """

    @abstractmethod
    async def save(self, blueprint_id: str, document: dict[str, Any]) -> None:
        """
        Insert or replace the document for a blueprint.

        Raises:
            PersistenceUnavailable: If the backing store cannot be written
        """
        pass

    @abstractmethod
    async def load(self, blueprint_id: str) -> "dict[str, Any] | None":
        """
        Load a blueprint document.

        Returns:
            The stored document, or None if not found
        """
        pass

    @abstractmethod
    async def list_all(self) -> "list[BlueprintRecord]":
        """
        List all blueprints.

        Returns:
            Records ordered by last update (newest first)
        """
        pass

    @abstractmethod
    async def delete(self, blueprint_id: str) -> bool:
        """
        Delete a blueprint.

        Returns:
            True if a blueprint was deleted
        """
        pass

    async def close(self) -> None:
        """Release resources (no-op by default)."""
        return None
