"""PostgreSQL role repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permgov.domain.entities import Role

_COLUMNS = "id, code, name, description, hierarchy_level, is_system_role, is_active"


def _to_role(r: tuple) -> Role:
    return Role(
        id=r[0],
        code=r[1],
        name=r[2],
        description=r[3],
        hierarchy_level=r[4],
        is_system_role=r[5],
        is_active=r[6],
    )


class PostgresRoleRepository:
    """Role repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, role_id: UUID) -> Role | None:
        """Get role by id."""
        cur = await self._conn.execute(f"SELECT {_COLUMNS} FROM role WHERE id = %s", (role_id,))
        r = await cur.fetchone()
        return _to_role(r) if r else None

    async def get_by_code(self, code: str) -> Role | None:
        """Get role by code."""
        cur = await self._conn.execute(f"SELECT {_COLUMNS} FROM role WHERE code = %s", (code,))
        r = await cur.fetchone()
        return _to_role(r) if r else None

    async def list_by_ids(self, role_ids: list[UUID]) -> list[Role]:
        if not role_ids:
            return []
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM role WHERE id = ANY(%s)",
            (role_ids,),
        )
        return [_to_role(r) for r in await cur.fetchall()]

    async def list_all(self, include_inactive: bool = False) -> list[Role]:
        """List all roles."""
        q = f"SELECT {_COLUMNS} FROM role"
        if not include_inactive:
            q += " WHERE is_active"
        cur = await self._conn.execute(q + " ORDER BY hierarchy_level DESC, name")
        return [_to_role(r) for r in await cur.fetchall()]
