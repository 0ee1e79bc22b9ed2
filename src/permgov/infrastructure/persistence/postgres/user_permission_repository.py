"""PostgreSQL user permission repository implementation."""

from datetime import datetime
from uuid import UUID

from psycopg import AsyncConnection

from permgov.domain.entities import UserPermissionGrant
from permgov.infrastructure.persistence.postgres.connection import to_jsonb

_COLUMNS = (
    "id, user_id, permission_id, created_at, updated_at, is_granted, priority, "
    "valid_from, valid_until, is_temporary, conditions, granted_by, grant_reason"
)

_IN_FORCE = (
    "(valid_from IS NULL OR valid_from <= %s) AND (valid_until IS NULL OR valid_until > %s)"
)


def _to_grant(r: tuple) -> UserPermissionGrant:
    return UserPermissionGrant(
        id=r[0],
        user_id=r[1],
        permission_id=r[2],
        created_at=r[3],
        updated_at=r[4],
        is_granted=r[5],
        priority=r[6],
        valid_from=r[7],
        valid_until=r[8],
        is_temporary=r[9],
        conditions=r[10],
        granted_by=r[11],
        grant_reason=r[12],
    )


class PostgresUserPermissionRepository:
    """Direct user grant repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, grant_id: UUID) -> UserPermissionGrant | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_permission WHERE id = %s",
            (grant_id,),
        )
        r = await cur.fetchone()
        return _to_grant(r) if r else None

    async def get(self, user_id: str, permission_id: UUID) -> UserPermissionGrant | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_permission WHERE user_id = %s AND permission_id = %s",
            (user_id, permission_id),
        )
        r = await cur.fetchone()
        return _to_grant(r) if r else None

    async def list_by_user(self, user_id: str) -> list[UserPermissionGrant]:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_permission WHERE user_id = %s "
            "ORDER BY priority DESC, created_at DESC",
            (user_id,),
        )
        return [_to_grant(r) for r in await cur.fetchall()]

    async def list_expired_temporary(self, now: datetime) -> list[UserPermissionGrant]:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_permission "
            "WHERE is_temporary AND valid_until <= %s",
            (now,),
        )
        return [_to_grant(r) for r in await cur.fetchall()]

    async def create(self, grant: UserPermissionGrant) -> UserPermissionGrant:
        g = grant
        await self._conn.execute(
            f"INSERT INTO user_permission ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                g.id,
                g.user_id,
                g.permission_id,
                g.created_at,
                g.updated_at,
                g.is_granted,
                g.priority,
                g.valid_from,
                g.valid_until,
                g.is_temporary,
                to_jsonb(g.conditions),
                g.granted_by,
                g.grant_reason,
            ),
        )
        return g

    async def create_batch(self, grants: list[UserPermissionGrant]) -> list[UserPermissionGrant]:
        """Create grants in batch."""
        for g in grants:
            await self.create(g)
        return grants

    async def update(self, grant: UserPermissionGrant) -> None:
        g = grant
        await self._conn.execute(
            "UPDATE user_permission SET is_granted=%s, priority=%s, valid_from=%s, "
            "valid_until=%s, is_temporary=%s, conditions=%s, updated_at=%s WHERE id=%s",
            (
                g.is_granted,
                g.priority,
                g.valid_from,
                g.valid_until,
                g.is_temporary,
                to_jsonb(g.conditions),
                g.updated_at,
                g.id,
            ),
        )

    async def delete(self, grant_id: UUID) -> None:
        await self._conn.execute("DELETE FROM user_permission WHERE id = %s", (grant_id,))

    async def list(
        self,
        user_id: str,
        *,
        is_granted: bool | None = None,
        is_temporary: bool | None = None,
        active_at: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[UserPermissionGrant], int]:
        """Page of a user's entries, highest priority then newest first, and the total."""
        conditions = ["user_id = %s"]
        params: list[object] = [user_id]
        if is_granted is not None:
            conditions.append("is_granted = %s")
            params.append(is_granted)
        if is_temporary is not None:
            conditions.append("is_temporary = %s")
            params.append(is_temporary)
        if active_at is not None:
            conditions.append(_IN_FORCE)
            params.extend([active_at, active_at])
        where = " WHERE " + " AND ".join(conditions)

        cur = await self._conn.execute(f"SELECT COUNT(*) FROM user_permission{where}", tuple(params))
        total = (await cur.fetchone())[0]
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_permission{where} "
            "ORDER BY priority DESC, created_at DESC OFFSET %s LIMIT %s",
            tuple(params) + (offset, limit),
        )
        return [_to_grant(r) for r in await cur.fetchall()], total
