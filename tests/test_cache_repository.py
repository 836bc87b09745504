"""Tests for the SQLAlchemy cache repository against in-memory SQLite."""

import pytest
from sqlalchemy.exc import IntegrityError

from adapters.db.cache_repository import AccountCacheRepositoryAdapter
from core.domain.entities import DirectoryAccount, utc_now
from core.usecases.cache_reconciler import CacheReconcileUseCase


@pytest.fixture
def repository(db_session, logger):
    return AccountCacheRepositoryAdapter(db_session, logger)


def fields(email, display_name: str = "") -> dict:
    now = utc_now()
    return {"email": email, "display_name": display_name, "last_synced_at": now, "updated_at": now}


@pytest.mark.asyncio
async def test_upsert_inserts_then_updates(repository):
    created = await repository.upsert("u1", fields("one@example.com", "One"))
    updated = await repository.upsert("u1", fields("renamed@example.com", "Renamed"))

    assert updated.id == created.id
    assert updated.email == "renamed@example.com"
    assert updated.display_name == "Renamed"
    assert await repository.count_entries() == 1


@pytest.mark.asyncio
async def test_get_by_external_id(repository):
    await repository.upsert("u1", fields("one@example.com"))

    assert (await repository.get_by_external_id("u1")).email == "one@example.com"
    assert await repository.get_by_external_id("missing") is None


@pytest.mark.asyncio
async def test_delete_where_key_not_in(repository):
    for external_id in ("u1", "u2", "u3"):
        await repository.upsert(external_id, fields(f"{external_id}@example.com"))

    deleted = await repository.delete_where_key_not_in({"u2"})

    assert deleted == 2
    remaining = await repository.list_entries()
    assert [entry.external_id for entry in remaining] == ["u2"]


@pytest.mark.asyncio
async def test_delete_with_empty_key_set_removes_all(repository):
    await repository.upsert("u1", fields("u1@example.com"))

    assert await repository.delete_where_key_not_in([]) == 1
    assert await repository.count_entries() == 0


@pytest.mark.asyncio
async def test_failed_upsert_rolls_back_and_session_stays_usable(repository):
    await repository.upsert("old1", fields("old1@example.com"))

    with pytest.raises(IntegrityError):
        await repository.upsert("u1", fields(None))

    created = await repository.upsert("u2", fields("two@example.com", "Two"))
    deleted = await repository.delete_where_key_not_in({"u1", "u2"})

    assert created.external_id == "u2"
    assert deleted == 1
    assert await repository.get_by_external_id("u1") is None
    assert [entry.external_id for entry in await repository.list_entries()] == ["u2"]


@pytest.mark.asyncio
async def test_sync_marker_is_a_single_record(repository):
    assert await repository.get_sync_marker() is None

    configured = await repository.save_group_config("g1", "All Staff")
    synced_at = utc_now()
    marker = await repository.update_sync_marker({"last_synced_at": synced_at})

    assert marker.id == configured.id
    assert marker.group_id == "g1"
    assert marker.group_name == "All Staff"
    assert marker.last_synced_at == synced_at
    assert (await repository.get_sync_marker()).id == configured.id


@pytest.mark.asyncio
async def test_list_entries_is_paginated_by_display_name(repository):
    await repository.upsert("u1", fields("c@example.com", "Charlie"))
    await repository.upsert("u2", fields("a@example.com", "Alice"))
    await repository.upsert("u3", fields("b@example.com", "Bob"))

    first_page = await repository.list_entries(skip=0, limit=2)
    second_page = await repository.list_entries(skip=2, limit=2)

    assert [entry.display_name for entry in first_page] == ["Alice", "Bob"]
    assert [entry.display_name for entry in second_page] == ["Charlie"]


@pytest.mark.asyncio
async def test_reconcile_replaces_cache_contents(repository, logger):
    for stale_id in ("old1", "old2", "old3"):
        await repository.upsert(stale_id, fields(f"{stale_id}@example.com"))

    reconciler = CacheReconcileUseCase(repository, logger)
    result = await reconciler.reconcile([
        DirectoryAccount(id="u1", email="one@example.com", display_name="One"),
        DirectoryAccount(id="u2", email="two@example.com", display_name="Two"),
    ])

    assert result.synced == 2
    assert result.deleted == 3
    assert {entry.external_id for entry in await repository.list_entries()} == {"u1", "u2"}
    assert (await repository.get_sync_marker()).last_synced_at is not None
