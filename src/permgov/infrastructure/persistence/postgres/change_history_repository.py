"""PostgreSQL change history repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permgov.application.dto.history_dto import HistoryFilters
from permgov.domain.entities import ChangeHistoryEntry
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType
from permgov.infrastructure.persistence.postgres.connection import to_jsonb

_COLUMNS = (
    "id, entity_type, entity_id, operation, previous_state, new_state, "
    "performed_by, created_at, metadata"
)


def _to_entry(r: tuple) -> ChangeHistoryEntry:
    return ChangeHistoryEntry(
        id=r[0],
        entity_type=HistoryEntityType(r[1]),
        entity_id=r[2],
        operation=ChangeOperation(r[3]),
        previous_state=r[4],
        new_state=r[5],
        performed_by=r[6],
        created_at=r[7],
        metadata=r[8] or {},
    )


def _where(filters: HistoryFilters) -> tuple[str, tuple]:
    """SQL WHERE clause for ledger filters. Date bounds are inclusive."""
    conditions = []
    params: list[object] = []
    if filters.entity_type:
        conditions.append("entity_type = %s")
        params.append(filters.entity_type.value)
    if filters.entity_id:
        conditions.append("entity_id = %s")
        params.append(filters.entity_id)
    if filters.performed_by:
        conditions.append("performed_by = %s")
        params.append(filters.performed_by)
    if filters.operation:
        conditions.append("operation = %s")
        params.append(filters.operation.value)
    if filters.start_date:
        conditions.append("created_at >= %s")
        params.append(filters.start_date)
    if filters.end_date:
        conditions.append("created_at <= %s")
        params.append(filters.end_date)
    where = " WHERE " + " AND ".join(conditions) if conditions else ""
    return where, tuple(params)


class PostgresChangeHistoryRepository:
    """Append-only ledger repository. Rows are never updated or deleted."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def create(self, entry: ChangeHistoryEntry) -> ChangeHistoryEntry:
        await self._conn.execute(
            f"INSERT INTO permission_change_history ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                entry.id,
                entry.entity_type.value,
                entry.entity_id,
                entry.operation.value,
                to_jsonb(entry.previous_state),
                to_jsonb(entry.new_state),
                entry.performed_by,
                entry.created_at,
                to_jsonb(entry.metadata),
            ),
        )
        return entry

    async def get_by_id(self, change_id: UUID) -> ChangeHistoryEntry | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission_change_history WHERE id = %s",
            (change_id,),
        )
        r = await cur.fetchone()
        return _to_entry(r) if r else None

    async def list(
        self,
        filters: HistoryFilters,
        *,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChangeHistoryEntry], int]:
        """Entries matching filters, newest first, and the total count."""
        where, params = _where(filters)
        cur = await self._conn.execute(
            f"SELECT COUNT(*) FROM permission_change_history{where}", params
        )
        total = (await cur.fetchone())[0]
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission_change_history{where} "
            "ORDER BY created_at DESC OFFSET %s LIMIT %s",
            params + (offset, limit),
        )
        return [_to_entry(r) for r in await cur.fetchall()], total
