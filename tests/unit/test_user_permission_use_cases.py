"""Unit tests for direct user permission use cases."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from permgov.application.cache_keys import effective_key, user_permissions_list_key
from permgov.application.dto.grant_dto import (
    BulkGrantInput,
    BulkRemoveInput,
    GrantPermissionInput,
    UpdatePermissionInput,
    UpdatePriorityInput,
    UserPermissionFilters,
)
from permgov.domain.exceptions import Conflict, InvalidInput, NotFound
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

NOW = datetime.now(UTC)
YESTERDAY = NOW - timedelta(days=1)
NEXT_WEEK = NOW + timedelta(days=7)


# --- Grant ---


@pytest.mark.asyncio
async def test_grant_creates_entry_and_history(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.add_user("u1")

    grant = await engine.grant_permission.execute(
        "u1", GrantPermissionInput(permission_id=read.id, grant_reason="onboarding"), "admin"
    )

    assert grant.priority == 100
    assert grant.granted_by == "admin"
    assert list(store.user_permissions) == [grant.id]
    [entry] = store.history
    assert entry.entity_type == HistoryEntityType.USER_PERMISSION
    assert entry.entity_id == str(grant.id)
    assert entry.operation == ChangeOperation.ASSIGN
    assert entry.previous_state is None
    assert entry.new_state["permission_id"] == str(read.id)
    assert entry.metadata["permission_code"] == "documents.read"
    assert entry.metadata["reason"] == "onboarding"


@pytest.mark.asyncio
async def test_grant_uses_requested_priority(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.add_user("u1")
    grant = await engine.grant_permission.execute(
        "u1", GrantPermissionInput(permission_id=read.id, priority=900), "admin"
    )
    assert grant.priority == 900


@pytest.mark.asyncio
async def test_grant_duplicate_conflicts(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read)

    with pytest.raises(Conflict):
        await engine.grant_permission.execute(
            "u1", GrantPermissionInput(permission_id=read.id, is_granted=False), "admin"
        )
    assert len(store.user_permissions) == 1
    assert store.history == []


@pytest.mark.asyncio
async def test_grant_inactive_permission_rejected(store, engine) -> None:
    legacy = store.add_permission("documents.legacy", is_active=False)
    store.add_user("u1")
    with pytest.raises(InvalidInput, match="inactive"):
        await engine.grant_permission.execute(
            "u1", GrantPermissionInput(permission_id=legacy.id), "admin"
        )


@pytest.mark.asyncio
async def test_grant_unknown_user_or_permission(store, engine) -> None:
    read = store.add_permission("documents.read")
    with pytest.raises(NotFound) as exc_info:
        await engine.grant_permission.execute(
            "ghost", GrantPermissionInput(permission_id=read.id), "admin"
        )
    assert exc_info.value.entity == "User"

    store.add_user("u1")
    with pytest.raises(NotFound) as exc_info:
        await engine.grant_permission.execute(
            "u1", GrantPermissionInput(permission_id=uuid4()), "admin"
        )
    assert exc_info.value.entity == "Permission"


@pytest.mark.asyncio
async def test_grant_invalidates_user_caches(store, engine, cache) -> None:
    read = store.add_permission("documents.read")
    store.add_user("u1")
    await engine.calculator.calculate("u1")
    await engine.list_permissions.execute("u1")
    list_key = user_permissions_list_key("u1", UserPermissionFilters().cache_fragment())
    assert await cache.get(effective_key("u1")) is not None
    assert await cache.get(list_key) is not None

    await engine.grant_permission.execute("u1", GrantPermissionInput(permission_id=read.id), "admin")

    assert await cache.get(effective_key("u1")) is None
    assert await cache.get(list_key) is None


# --- Update ---


@pytest.mark.asyncio
async def test_update_changes_fields_and_records_previous(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read, priority=100)

    grant = await engine.update_permission.execute(
        "u1",
        read.id,
        UpdatePermissionInput(is_granted=False, valid_until=NEXT_WEEK),
        "admin",
    )

    assert not grant.is_granted
    assert grant.valid_until == NEXT_WEEK
    assert grant.priority == 100
    [entry] = store.history
    assert entry.operation == ChangeOperation.UPDATE
    assert entry.previous_state["is_granted"] is True
    assert entry.new_state["is_granted"] is False


@pytest.mark.asyncio
async def test_update_rejects_inverted_window(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read, valid_from=NOW)
    with pytest.raises(InvalidInput):
        await engine.update_permission.execute(
            "u1", read.id, UpdatePermissionInput(valid_until=YESTERDAY), "admin"
        )
    assert store.history == []


@pytest.mark.asyncio
async def test_update_cannot_open_temporary_window(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read, is_temporary=True, valid_until=NEXT_WEEK)
    with pytest.raises(InvalidInput, match="Temporary"):
        await engine.update_permission.execute(
            "u1", read.id, UpdatePermissionInput(clear_valid_until=True), "admin"
        )


@pytest.mark.asyncio
async def test_update_priority_records_old_and_new(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read, priority=100)

    grant = await engine.update_permission.update_priority(
        "u1", read.id, UpdatePriorityInput(priority=500, reason="escalation"), "admin"
    )

    assert grant.priority == 500
    [entry] = store.history
    assert entry.operation == ChangeOperation.UPDATE_PRIORITY
    assert entry.metadata == {"old_priority": 100, "new_priority": 500, "reason": "escalation"}


@pytest.mark.asyncio
async def test_update_missing_entry(store, engine) -> None:
    store.add_user("u1")
    with pytest.raises(NotFound):
        await engine.update_permission.execute(
            "u1", uuid4(), UpdatePermissionInput(priority=1), "admin"
        )


# --- Revoke ---


@pytest.mark.asyncio
async def test_revoke_deletes_and_records(store, engine) -> None:
    read = store.add_permission("documents.read")
    grant = store.grant("u1", read)

    await engine.revoke_permission.execute("u1", read.id, "admin", reason="left team")

    assert store.user_permissions == {}
    [entry] = store.history
    assert entry.operation == ChangeOperation.REVOKE
    assert entry.entity_id == str(grant.id)
    assert entry.new_state is None
    assert entry.previous_state["id"] == str(grant.id)
    assert entry.metadata == {"reason": "left team"}


@pytest.mark.asyncio
async def test_revoke_without_entry_writes_nothing(store, engine) -> None:
    """Revoking a permission the user lacks is NotFound and leaves no history."""
    read = store.add_permission("documents.read")
    store.add_user("u1")
    with pytest.raises(NotFound):
        await engine.revoke_permission.execute("u1", read.id, "admin")
    assert store.history == []


# --- Bulk ---


@pytest.mark.asyncio
async def test_bulk_grant_skips_existing(store, engine) -> None:
    read = store.add_permission("documents.read")
    write = store.add_permission("documents.write")
    export = store.add_permission("reports.export")
    store.grant("u1", read)

    result = await engine.bulk_grant_permissions.execute(
        "u1", BulkGrantInput(permission_ids=[read.id, write.id, export.id, write.id]), "admin"
    )

    assert [g.permission_id for g in result.assigned] == [write.id, export.id]
    assert result.skipped == [read.id]
    [entry] = store.history
    assert entry.operation == ChangeOperation.BULK_ASSIGN
    assert entry.entity_id == "u1"
    assert entry.new_state["count"] == 2
    assert len(entry.new_state["items"]) == 2


@pytest.mark.asyncio
async def test_bulk_grant_is_atomic(store, engine) -> None:
    """One inactive permission aborts the whole batch."""
    read = store.add_permission("documents.read")
    legacy = store.add_permission("documents.legacy", is_active=False)
    store.add_user("u1")

    with pytest.raises(InvalidInput):
        await engine.bulk_grant_permissions.execute(
            "u1", BulkGrantInput(permission_ids=[read.id, legacy.id]), "admin"
        )
    assert store.user_permissions == {}
    assert store.history == []


@pytest.mark.asyncio
async def test_bulk_grant_all_existing_rejected(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read)
    with pytest.raises(InvalidInput, match="already assigned"):
        await engine.bulk_grant_permissions.execute(
            "u1", BulkGrantInput(permission_ids=[read.id]), "admin"
        )


@pytest.mark.asyncio
async def test_bulk_remove(store, engine) -> None:
    read = store.add_permission("documents.read")
    write = store.add_permission("documents.write")
    store.grant("u1", read)
    store.grant("u1", write)

    result = await engine.bulk_remove_permissions.execute(
        "u1", BulkRemoveInput(permission_ids=[read.id, uuid4()], reason="cleanup"), "admin"
    )

    assert result.removed == 1
    assert result.not_found == 1
    assert [g.permission_id for g in store.user_permissions.values()] == [write.id]
    [entry] = store.history
    assert entry.operation == ChangeOperation.BULK_REMOVE
    assert entry.previous_state["count"] == 1
    assert entry.new_state is None


@pytest.mark.asyncio
async def test_bulk_remove_nothing_matching(store, engine) -> None:
    store.add_user("u1")
    with pytest.raises(InvalidInput, match="No matching"):
        await engine.bulk_remove_permissions.execute(
            "u1", BulkRemoveInput(permission_ids=[uuid4()]), "admin"
        )


# --- Listing ---


@pytest.mark.asyncio
async def test_list_pages_and_filters(store, engine) -> None:
    for i in range(5):
        store.grant("u1", store.add_permission(f"documents.action{i}"), priority=i)
    store.grant("u1", store.add_permission("documents.denied"), is_granted=False, priority=99)

    page = await engine.list_permissions.execute("u1", UserPermissionFilters(page=1, limit=2))
    assert page.total == 6
    assert page.total_pages == 3
    assert [g.priority for g in page.items] == [99, 4]

    denied = await engine.list_permissions.execute(
        "u1", UserPermissionFilters(is_granted=False)
    )
    assert denied.total == 1


@pytest.mark.asyncio
async def test_list_served_from_cache_until_invalidated(store, engine) -> None:
    read = store.add_permission("documents.read")
    store.grant("u1", read)

    first = await engine.list_permissions.execute("u1")
    store.grant("u1", store.add_permission("documents.write"))
    cached = await engine.list_permissions.execute("u1")
    assert cached.total == first.total == 1
    assert cached.items[0].id == first.items[0].id

    await engine.revoke_permission.execute("u1", read.id, "admin")
    fresh = await engine.list_permissions.execute("u1")
    assert fresh.total == 1
    assert fresh.items[0].permission_id != read.id


@pytest.mark.asyncio
async def test_list_unknown_user(engine) -> None:
    with pytest.raises(NotFound):
        await engine.list_permissions.execute("ghost")


@pytest.mark.asyncio
async def test_temporary_permissions_sorted_by_expiry(store, engine) -> None:
    later = store.grant(
        "u1", store.add_permission("reports.export"), is_temporary=True, valid_until=NEXT_WEEK
    )
    sooner = store.grant(
        "u1",
        store.add_permission("reports.view"),
        is_temporary=True,
        valid_until=NOW + timedelta(hours=1),
    )
    store.grant("u1", store.add_permission("reports.old"), is_temporary=True, valid_until=YESTERDAY)
    store.grant("u1", store.add_permission("documents.read"))

    result = await engine.temporary_permissions.execute("u1")
    assert [g.id for g in result.temporary] == [sooner.id, later.id]
    assert result.count == 2


# --- Cleanup ---


@pytest.mark.asyncio
async def test_cleanup_removes_expired_temporary(store, engine) -> None:
    expired = store.grant(
        "u1", store.add_permission("reports.export"), is_temporary=True, valid_until=YESTERDAY
    )
    store.grant("u1", store.add_permission("reports.view"), is_temporary=True, valid_until=NEXT_WEEK)
    store.grant("u2", store.add_permission("documents.read"))

    removed = await engine.cleanup_expired.execute()

    assert removed == 1
    assert expired.id not in store.user_permissions
    assert len(store.user_permissions) == 2
    [entry] = store.history
    assert entry.operation == ChangeOperation.REVOKE
    assert entry.performed_by == "system"
    assert entry.metadata == {"reason": "Temporary permission expired"}


@pytest.mark.asyncio
async def test_cleanup_nothing_expired(store, engine) -> None:
    store.grant("u1", store.add_permission("documents.read"))
    assert await engine.cleanup_expired.execute() == 0
    assert store.history == []
