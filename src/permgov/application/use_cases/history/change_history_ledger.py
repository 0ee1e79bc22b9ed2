"""Change history ledger - append-only audit trail with rollback."""

import json
import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from deepdiff import DeepDiff

from permgov.application.cache_keys import invalidate_users
from permgov.application.dto.history_dto import HistoryFilters, HistoryPage, StateComparison
from permgov.application.ports import PermissionCache, UnitOfWork
from permgov.application.snapshots import restore, snapshot
from permgov.domain.entities import ChangeHistoryEntry
from permgov.domain.exceptions import Conflict, IllegalOperation, InvalidInput, NotFound
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType, Metadata

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


async def record_change(
    uow: UnitOfWork,
    entity_type: HistoryEntityType,
    entity_id: str,
    operation: ChangeOperation,
    previous_state: dict[str, Any] | None,
    new_state: dict[str, Any] | None,
    performed_by: str,
    metadata: Metadata | None = None,
) -> ChangeHistoryEntry:
    """Append a ledger entry inside the caller's unit of work."""
    entry = ChangeHistoryEntry(
        id=uuid4(),
        entity_type=entity_type,
        entity_id=entity_id,
        operation=operation,
        previous_state=previous_state,
        new_state=new_state,
        performed_by=performed_by,
        created_at=datetime.now(UTC),
        metadata=metadata or {},
    )
    return await uow.change_history.create(entry)


def _offset(page: int, limit: int) -> int:
    if page < 1:
        raise InvalidInput("page must be >= 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidInput(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return (page - 1) * limit


def _rows(state: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Rows carried by a snapshot. Bulk snapshots list them under "items"."""
    if not state:
        return []
    if "items" in state:
        return list(state["items"])
    return [state]


def _diff_keys(
    state_1: dict[str, Any], state_2: dict[str, Any]
) -> tuple[dict[str, Any], dict[str, Any], dict[str, dict[str, Any]]]:
    added = {k: v for k, v in state_2.items() if k not in state_1}
    removed = {k: v for k, v in state_1.items() if k not in state_2}
    modified = {
        k: {"from": state_1[k], "to": v}
        for k, v in state_2.items()
        if k in state_1 and state_1[k] != v
    }
    return added, removed, modified


def _summary(
    change_1: ChangeHistoryEntry,
    change_2: ChangeHistoryEntry,
    added: dict,
    removed: dict,
    modified: dict,
) -> str:
    parts = [
        f"Comparing changes from {change_1.created_at.isoformat()} "
        f"to {change_2.created_at.isoformat()}"
    ]
    if added:
        parts.append(f"{len(added)} field(s) added")
    if removed:
        parts.append(f"{len(removed)} field(s) removed")
    if modified:
        parts.append(f"{len(modified)} field(s) modified")
    if not (added or removed or modified):
        parts.append("No differences found")
    return ". ".join(parts)


class _RowStore:
    """Repository access for one ledger entity type, keyed by row snapshot."""

    def __init__(self, uow: UnitOfWork, entity_type: HistoryEntityType) -> None:
        self.entity_type = entity_type
        if entity_type == HistoryEntityType.USER_PERMISSION:
            self.repo = uow.user_permissions
        elif entity_type == HistoryEntityType.USER_ROLE:
            self.repo = uow.user_roles
        elif entity_type == HistoryEntityType.ROLE_PERMISSION:
            self.repo = uow.role_permissions
        else:
            raise IllegalOperation(f"Rollback not supported for entity type: {entity_type}")

    async def get_by_unique_key(self, entity: Any) -> Any:
        if self.entity_type == HistoryEntityType.USER_PERMISSION:
            return await self.repo.get(entity.user_id, entity.permission_id)
        if self.entity_type == HistoryEntityType.USER_ROLE:
            return await self.repo.get(entity.user_id, entity.role_id)
        return await self.repo.get(entity.role_id, entity.permission_id)


class ChangeHistoryLedger:
    """Query, compare and roll back recorded changes."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def record(
        self,
        uow: UnitOfWork,
        entity_type: HistoryEntityType,
        entity_id: str,
        operation: ChangeOperation,
        previous_state: dict[str, Any] | None,
        new_state: dict[str, Any] | None,
        performed_by: str,
        metadata: Metadata | None = None,
    ) -> ChangeHistoryEntry:
        return await record_change(
            uow,
            entity_type,
            entity_id,
            operation,
            previous_state,
            new_state,
            performed_by,
            metadata,
        )

    async def get_change(self, change_id: UUID) -> ChangeHistoryEntry:
        async with self._uow_factory() as uow:
            entry = await uow.change_history.get_by_id(change_id)
        if not entry:
            raise NotFound("Change history", str(change_id))
        return entry

    async def get_change_history(
        self,
        filters: HistoryFilters | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> HistoryPage:
        """Entries matching filters, newest first."""
        offset = _offset(page, limit)
        async with self._uow_factory() as uow:
            items, total = await uow.change_history.list(
                filters or HistoryFilters(), offset=offset, limit=limit
            )
        return HistoryPage(items=items, total=total, page=page, limit=limit)

    async def get_entity_history(
        self,
        entity_type: HistoryEntityType,
        entity_id: str,
        filters: HistoryFilters | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> HistoryPage:
        filters = replace(filters or HistoryFilters(), entity_type=entity_type, entity_id=entity_id)
        return await self.get_change_history(filters, page, limit)

    async def get_user_changes(
        self,
        performed_by: str,
        filters: HistoryFilters | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> HistoryPage:
        filters = replace(filters or HistoryFilters(), performed_by=performed_by)
        return await self.get_change_history(filters, page, limit)

    async def get_changes_by_date_range(
        self,
        start_date: datetime,
        end_date: datetime,
        filters: HistoryFilters | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> HistoryPage:
        filters = replace(filters or HistoryFilters(), start_date=start_date, end_date=end_date)
        return await self.get_change_history(filters, page, limit)

    async def get_rollback_history(self, page: int = 1, limit: int = 20) -> HistoryPage:
        return await self.get_change_history(
            HistoryFilters(operation=ChangeOperation.ROLLBACK), page, limit
        )

    async def compare_states(self, change_id_1: UUID, change_id_2: UUID) -> StateComparison:
        """Diff the new_state snapshots of two changes."""
        async with self._uow_factory() as uow:
            change_1 = await uow.change_history.get_by_id(change_id_1)
            change_2 = await uow.change_history.get_by_id(change_id_2)
        if not change_1:
            raise NotFound("Change history", str(change_id_1))
        if not change_2:
            raise NotFound("Change history", str(change_id_2))

        state_1 = change_1.new_state or {}
        state_2 = change_2.new_state or {}
        added, removed, modified = _diff_keys(state_1, state_2)
        deep_diff = json.loads(
            DeepDiff(state_1, state_2, ignore_order=True, verbose_level=2).to_json()
        )
        return StateComparison(
            change_1=change_1,
            change_2=change_2,
            added=added,
            removed=removed,
            modified=modified,
            deep_diff=deep_diff,
            summary=_summary(change_1, change_2, added, removed, modified),
        )

    async def rollback(
        self,
        change_id: UUID,
        performed_by: str,
        reason: str | None = None,
    ) -> ChangeHistoryEntry:
        """Re-apply the previous_state of a change as the live state.

        Rows the change created are deleted, rows it removed or modified are
        written back. The rollback itself is recorded as a new entry.
        """
        async with self._uow_factory() as uow:
            target = await uow.change_history.get_by_id(change_id)
            if not target:
                raise NotFound("Change history", str(change_id))
            if target.operation == ChangeOperation.ROLLBACK:
                raise IllegalOperation("Cannot rollback a rollback operation")

            store = _RowStore(uow, target.entity_type)
            restored_rows = _rows(target.previous_state)
            changed_rows = _rows(target.new_state)
            keep_ids = {row["id"] for row in restored_rows}
            row_ids = list(dict.fromkeys(row["id"] for row in changed_rows + restored_rows))

            live_before = []
            for row_id in row_ids:
                live = await store.repo.get_by_id(UUID(row_id))
                if live:
                    live_before.append(snapshot(live))

            for row in changed_rows:
                if row["id"] in keep_ids:
                    continue
                if await store.repo.get_by_id(UUID(row["id"])):
                    await store.repo.delete(UUID(row["id"]))

            for row in restored_rows:
                entity = restore(target.entity_type, row)
                if await store.repo.get_by_id(entity.id):
                    await store.repo.update(entity)
                    continue
                holder = await store.get_by_unique_key(entity)
                if holder and holder.id != entity.id:
                    raise Conflict(
                        f"Cannot restore {target.entity_type}: key is held by {holder.id}"
                    )
                await store.repo.create(entity)

            states = (target.previous_state, target.new_state)
            if any(state and "items" in state for state in states):
                context = {
                    k: v
                    for k, v in (target.new_state or target.previous_state).items()
                    if k not in ("items", "count")
                }
                previous_state = {**context, "items": live_before, "count": len(live_before)}
            else:
                previous_state = live_before[0] if live_before else None

            affected = await self._affected_users(
                uow, target.entity_type, changed_rows + restored_rows
            )
            entry = await record_change(
                uow,
                target.entity_type,
                target.entity_id,
                ChangeOperation.ROLLBACK,
                previous_state,
                target.previous_state,
                performed_by,
                {
                    "rollback_of": str(target.id),
                    "original_operation": target.operation.value,
                    "original_performed_by": target.performed_by,
                    "original_created_at": target.created_at.isoformat(),
                    "reason": reason,
                },
            )

        await invalidate_users(self._cache, affected)
        logger.info(
            "Rolled back change %s (%s) by %s", change_id, target.operation, performed_by
        )
        return entry

    async def _affected_users(
        self,
        uow: UnitOfWork,
        entity_type: HistoryEntityType,
        rows: list[dict[str, Any]],
    ) -> list[str]:
        if entity_type != HistoryEntityType.ROLE_PERMISSION:
            return [row["user_id"] for row in rows if row.get("user_id")]
        users: list[str] = []
        for role_id in dict.fromkeys(row["role_id"] for row in rows):
            users.extend(await uow.user_roles.list_user_ids_by_role(UUID(role_id)))
        return users
