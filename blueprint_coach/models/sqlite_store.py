# blueprint_coach/models/sqlite_store.py
"""
SQLite-backed blueprint persistence.

Provides async save/load with WAL mode and IMMEDIATE transactions. Every
database failure is surfaced as PersistenceUnavailable so callers can fall
back to local-only storage without losing in-memory state.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from blueprint_coach.errors import PersistenceUnavailable
from blueprint_coach.models.blueprints import BlueprintRecord, summarize_document
from blueprint_coach.models.schema import init_db
from blueprint_coach.models.store import BlueprintStore

logger = logging.getLogger(__name__)


class SQLiteBlueprintStore(BlueprintStore):
    """
    Async SQLite-backed blueprint storage.

    Features:
        - WAL mode for concurrent reads/writes
        - IMMEDIATE transactions for write safety
        - Upsert keeps the original created_at
        - No persistent connections (avoids resource leaks)
    """

    def __init__(self, db_path: str) -> None:
        """
        Initialize SQLite blueprint store.

        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        logger.info(f"Created SQLiteBlueprintStore with path: {db_path}")

    async def initialize(self) -> None:
        """Initialize database schema."""
        try:
            await init_db(self._db_path)
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceUnavailable(f"Cannot initialize {self._db_path}: {e}") from e

    async def save(self, blueprint_id: str, document: dict[str, Any]) -> None:
        """
        Insert or replace a blueprint document.

        Raises:
            PersistenceUnavailable: On any database error
        """
        title, stage, progress = summarize_document(document)
        now_iso = datetime.now(timezone.utc).isoformat()

        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("BEGIN IMMEDIATE")
                try:
                    await db.execute(
                        """
                        INSERT INTO blueprints (
                            id, title, stage, progress, document, created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            title = excluded.title,
                            stage = excluded.stage,
                            progress = excluded.progress,
                            document = excluded.document,
                            updated_at = excluded.updated_at
                        """,
                        (
                            blueprint_id,
                            title,
                            stage,
                            progress,
                            json.dumps(document),
                            now_iso,
                            now_iso,
                        ),
                    )
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceUnavailable(f"Failed to save blueprint {blueprint_id}: {e}") from e

        logger.info(f"Saved blueprint {blueprint_id} ({stage}, {progress:.0%})")

    async def load(self, blueprint_id: str) -> dict[str, Any] | None:
        """
        Load a blueprint document.

        Raises:
            PersistenceUnavailable: On any database error
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                cursor = await db.execute(
                    "SELECT document FROM blueprints WHERE id = ?", (blueprint_id,)
                )
                row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceUnavailable(f"Failed to load blueprint {blueprint_id}: {e}") from e

        if not row:
            return None
        return json.loads(row[0])

    async def list_all(self) -> list[BlueprintRecord]:
        """List all blueprints, newest update first."""
        try:
            async with aiosqlite.connect(self._db_path) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute("SELECT * FROM blueprints ORDER BY updated_at DESC")
                rows = await cursor.fetchall()
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceUnavailable(f"Failed to list blueprints: {e}") from e

        return [self._row_to_record(row) for row in rows]

    async def delete(self, blueprint_id: str) -> bool:
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("BEGIN IMMEDIATE")
                cursor = await db.execute("DELETE FROM blueprints WHERE id = ?", (blueprint_id,))
                deleted = cursor.rowcount
                await db.commit()
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceUnavailable(f"Failed to delete blueprint {blueprint_id}: {e}") from e

        if deleted:
            logger.info(f"Deleted blueprint {blueprint_id}")
        return deleted > 0

    async def close(self) -> None:
        """
        Checkpoint WAL and close database.

        Truncates WAL file to avoid unbounded growth.
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                logger.info("WAL checkpoint completed")
        except Exception as e:
            logger.warning(f"WAL checkpoint failed: {e}")

    def _row_to_record(self, row: aiosqlite.Row) -> BlueprintRecord:
        return BlueprintRecord(
            blueprint_id=row["id"],
            title=row["title"],
            stage=row["stage"],
            progress=row["progress"],
            document=json.loads(row["document"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
