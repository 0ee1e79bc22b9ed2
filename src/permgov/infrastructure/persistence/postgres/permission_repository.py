"""PostgreSQL permission repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permgov.domain.entities import Permission

_COLUMNS = "id, code, name, resource, action, scope, description, is_system_permission, is_active"


def _to_permission(r: tuple) -> Permission:
    return Permission(
        id=r[0],
        code=r[1],
        name=r[2],
        resource=r[3],
        action=r[4],
        scope=r[5],
        description=r[6],
        is_system_permission=r[7],
        is_active=r[8],
    )


class PostgresPermissionRepository:
    """Permission catalog repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, permission_id: UUID) -> Permission | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE id = %s",
            (permission_id,),
        )
        r = await cur.fetchone()
        return _to_permission(r) if r else None

    async def get_by_code(self, code: str) -> Permission | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE code = %s",
            (code,),
        )
        r = await cur.fetchone()
        return _to_permission(r) if r else None

    async def list_by_ids(self, permission_ids: list[UUID]) -> list[Permission]:
        if not permission_ids:
            return []
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE id = ANY(%s)",
            (permission_ids,),
        )
        return [_to_permission(r) for r in await cur.fetchall()]

    async def list(
        self,
        *,
        resource: str | None = None,
        action: str | None = None,
        include_inactive: bool = False,
    ) -> list[Permission]:
        """List permissions with optional filters, ordered by resource and action."""
        conditions = []
        params: list[object] = []
        if not include_inactive:
            conditions.append("is_active")
        if resource:
            conditions.append("resource = %s")
            params.append(resource)
        if action:
            conditions.append("action = %s")
            params.append(action)
        where = " WHERE " + " AND ".join(conditions) if conditions else ""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission{where} ORDER BY resource, action, code",
            tuple(params),
        )
        return [_to_permission(r) for r in await cur.fetchall()]
