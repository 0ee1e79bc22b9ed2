"""PostgreSQL role permission repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permgov.domain.entities import RolePermission
from permgov.infrastructure.persistence.postgres.connection import to_jsonb

_COLUMNS = (
    "id, role_id, permission_id, created_at, updated_at, is_granted, "
    "valid_from, valid_until, conditions, granted_by, grant_reason"
)


def _to_role_permission(r: tuple) -> RolePermission:
    return RolePermission(
        id=r[0],
        role_id=r[1],
        permission_id=r[2],
        created_at=r[3],
        updated_at=r[4],
        is_granted=r[5],
        valid_from=r[6],
        valid_until=r[7],
        conditions=r[8],
        granted_by=r[9],
        grant_reason=r[10],
    )


class PostgresRolePermissionRepository:
    """Role to permission link repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, role_permission_id: UUID) -> RolePermission | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM role_permission WHERE id = %s",
            (role_permission_id,),
        )
        r = await cur.fetchone()
        return _to_role_permission(r) if r else None

    async def get(self, role_id: UUID, permission_id: UUID) -> RolePermission | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM role_permission WHERE role_id = %s AND permission_id = %s",
            (role_id, permission_id),
        )
        r = await cur.fetchone()
        return _to_role_permission(r) if r else None

    async def list_by_role(self, role_id: UUID) -> list[RolePermission]:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM role_permission WHERE role_id = %s ORDER BY created_at",
            (role_id,),
        )
        return [_to_role_permission(r) for r in await cur.fetchall()]

    async def list_by_roles(self, role_ids: list[UUID]) -> list[RolePermission]:
        if not role_ids:
            return []
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM role_permission WHERE role_id = ANY(%s) ORDER BY created_at",
            (role_ids,),
        )
        return [_to_role_permission(r) for r in await cur.fetchall()]

    async def create(self, role_permission: RolePermission) -> RolePermission:
        rp = role_permission
        await self._conn.execute(
            f"INSERT INTO role_permission ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                rp.id,
                rp.role_id,
                rp.permission_id,
                rp.created_at,
                rp.updated_at,
                rp.is_granted,
                rp.valid_from,
                rp.valid_until,
                to_jsonb(rp.conditions),
                rp.granted_by,
                rp.grant_reason,
            ),
        )
        return rp

    async def create_batch(self, role_permissions: list[RolePermission]) -> list[RolePermission]:
        for rp in role_permissions:
            await self.create(rp)
        return role_permissions

    async def update(self, role_permission: RolePermission) -> None:
        rp = role_permission
        await self._conn.execute(
            "UPDATE role_permission SET is_granted=%s, valid_from=%s, valid_until=%s, "
            "conditions=%s, updated_at=%s WHERE id=%s",
            (
                rp.is_granted,
                rp.valid_from,
                rp.valid_until,
                to_jsonb(rp.conditions),
                rp.updated_at,
                rp.id,
            ),
        )

    async def delete(self, role_permission_id: UUID) -> None:
        await self._conn.execute("DELETE FROM role_permission WHERE id = %s", (role_permission_id,))
