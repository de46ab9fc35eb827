# tests/unit/test_sqlite_store.py
"""
Unit tests for blueprint persistence.

Tests save/load round trips, upserts, listing, deletion and failure
surfacing for SQLiteBlueprintStore and InMemoryBlueprintStore.
"""

from pathlib import Path

import pytest
import pytest_asyncio

from blueprint_coach.errors import PersistenceUnavailable
from blueprint_coach.models.blueprints import InMemoryBlueprintStore, summarize_document
from blueprint_coach.models.sqlite_store import SQLiteBlueprintStore


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteBlueprintStore:
    """Create and initialize a test SQLite store."""
    db_path = str(tmp_path / "test_blueprints.db")
    store = SQLiteBlueprintStore(db_path)
    await store.initialize()
    return store


@pytest.fixture
def document() -> dict:
    """A minimal state document."""
    return {
        "blueprint_id": "abc123def456",
        "handoff": {"subject": "Science", "grade_level": "3rd grade", "duration": "2 weeks"},
        "stage": "ideation",
        "captured": {"ideation.bigIdea": "Energy is never lost"},
        "messages": [],
    }


@pytest.mark.asyncio
async def test_save_and_load_roundtrip(store: SQLiteBlueprintStore, document: dict):
    """Test saving a document and loading it preserves all fields."""
    await store.save("abc123def456", document)

    loaded = await store.load("abc123def456")

    assert loaded == document


@pytest.mark.asyncio
async def test_load_missing_returns_none(store: SQLiteBlueprintStore):
    """Test loading an unknown ID returns None."""
    assert await store.load("000000000000") is None


@pytest.mark.asyncio
async def test_save_upserts_and_keeps_created_at(store: SQLiteBlueprintStore, document: dict):
    """Test saving twice replaces the document but keeps created_at."""
    await store.save("abc123def456", document)
    first = (await store.list_all())[0]

    document["stage"] = "journey"
    await store.save("abc123def456", document)
    records = await store.list_all()

    assert len(records) == 1
    assert records[0].stage == "journey"
    assert records[0].created_at == first.created_at
    assert records[0].updated_at >= first.updated_at


@pytest.mark.asyncio
async def test_list_all_derives_summary(store: SQLiteBlueprintStore, document: dict):
    """Test listing exposes title, stage and progress derived from the document."""
    await store.save("abc123def456", document)
    await store.save("fff000fff000", {"handoff": {"subject": "Art"}})

    records = {r.blueprint_id: r for r in await store.list_all()}

    assert records["abc123def456"].title == "Science (3rd grade)"
    assert records["abc123def456"].progress == pytest.approx(0.11)
    assert records["fff000fff000"].title == "Art"
    assert records["fff000fff000"].stage == "onboarding"


@pytest.mark.asyncio
async def test_delete(store: SQLiteBlueprintStore, document: dict):
    """Test deleting returns True once, then False."""
    await store.save("abc123def456", document)

    assert await store.delete("abc123def456") is True
    assert await store.delete("abc123def456") is False
    assert await store.load("abc123def456") is None


@pytest.mark.asyncio
async def test_close_is_safe(store: SQLiteBlueprintStore):
    """Test close checkpoints without raising."""
    await store.close()


@pytest.mark.asyncio
async def test_unwritable_path_raises_persistence_unavailable(tmp_path: Path, document: dict):
    """Test database errors surface as PersistenceUnavailable."""
    store = SQLiteBlueprintStore(str(tmp_path / "missing" / "dir" / "db.sqlite"))

    with pytest.raises(PersistenceUnavailable):
        await store.save("abc123def456", document)


@pytest.mark.asyncio
async def test_in_memory_store_returns_copies(document: dict):
    """Test the in-memory store isolates stored documents from callers."""
    store = InMemoryBlueprintStore()
    await store.save("abc123def456", document)

    loaded = await store.load("abc123def456")
    loaded["captured"]["ideation.bigIdea"] = "changed"

    assert (await store.load("abc123def456"))["captured"]["ideation.bigIdea"] == "Energy is never lost"
    assert len(await store.list_all()) == 1
    assert await store.delete("abc123def456") is True


def test_summarize_partial_document():
    """Test summaries tolerate empty documents."""
    assert summarize_document({}) == ("Untitled blueprint", "onboarding", 0.0)
