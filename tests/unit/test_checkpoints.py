"""
Unit tests for checkpoint storage
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from core.exceptions import CheckpointError
from ingestion.checkpoints import CheckpointStore
from models.checkpoint import PartitionCheckpoint


@pytest.mark.asyncio
async def test_completed_returns_only_checkpointed(db_session):
    store = CheckpointStore(db_session)
    await store.mark_complete("junoslogs-2023.01.01-00")
    await store.mark_complete("junoslogs-2023.01.01-02")

    done = await store.completed([
        "junoslogs-2023.01.01-00",
        "junoslogs-2023.01.01-01",
        "junoslogs-2023.01.01-02",
    ])

    assert done == {"junoslogs-2023.01.01-00", "junoslogs-2023.01.01-02"}


@pytest.mark.asyncio
async def test_completed_batches_large_candidate_lists(db_session):
    store = CheckpointStore(db_session, batch_size=3)
    names = [f"junoslogs-2023.01.01-{h:02d}" for h in range(10)]
    for name in names[::2]:
        await store.mark_complete(name)

    done = await store.completed(names)

    assert done == set(names[::2])


@pytest.mark.asyncio
async def test_completed_with_no_candidates(db_session):
    assert await CheckpointStore(db_session).completed([]) == set()


@pytest.mark.asyncio
async def test_duplicate_checkpoint_is_benign(session_factory):
    async with session_factory() as first, session_factory() as second:
        assert await CheckpointStore(first).mark_complete("junoslogs-2023.01.01-00") is True
        assert await CheckpointStore(second).mark_complete("junoslogs-2023.01.01-00") is False

    async with session_factory() as session:
        count = (await session.execute(
            select(func.count()).select_from(PartitionCheckpoint)
        )).scalar()
    assert count == 1


@pytest.mark.asyncio
async def test_session_usable_after_duplicate(db_session):
    store = CheckpointStore(db_session)
    await store.mark_complete("junoslogs-2023.01.01-00")
    await store.mark_complete("junoslogs-2023.01.01-00")

    assert await store.mark_complete("junoslogs-2023.01.01-01") is True


@pytest.mark.asyncio
async def test_read_failure_raises_checkpoint_error():
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("no such table")))

    with pytest.raises(CheckpointError):
        await CheckpointStore(session).completed(["junoslogs-2023.01.01-00"])


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        CheckpointStore(MagicMock(), batch_size=0)
