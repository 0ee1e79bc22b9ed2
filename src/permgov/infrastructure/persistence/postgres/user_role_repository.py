"""PostgreSQL user role repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permgov.domain.entities import UserRoleAssignment

_COLUMNS = (
    "id, user_id, role_id, assigned_at, updated_at, is_active, "
    "effective_from, effective_until, assigned_by"
)


def _to_assignment(r: tuple) -> UserRoleAssignment:
    return UserRoleAssignment(
        id=r[0],
        user_id=r[1],
        role_id=r[2],
        assigned_at=r[3],
        updated_at=r[4],
        is_active=r[5],
        effective_from=r[6],
        effective_until=r[7],
        assigned_by=r[8],
    )


class PostgresUserRoleRepository:
    """User role assignment repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, assignment_id: UUID) -> UserRoleAssignment | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_role WHERE id = %s",
            (assignment_id,),
        )
        r = await cur.fetchone()
        return _to_assignment(r) if r else None

    async def get(self, user_id: str, role_id: UUID) -> UserRoleAssignment | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_role WHERE user_id = %s AND role_id = %s",
            (user_id, role_id),
        )
        r = await cur.fetchone()
        return _to_assignment(r) if r else None

    async def list_by_user(self, user_id: str) -> list[UserRoleAssignment]:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_role WHERE user_id = %s ORDER BY assigned_at",
            (user_id,),
        )
        return [_to_assignment(r) for r in await cur.fetchall()]

    async def list_user_ids_by_role(self, role_id: UUID) -> list[str]:
        """Every user with an assignment to the role, active or not."""
        cur = await self._conn.execute(
            "SELECT DISTINCT user_id FROM user_role WHERE role_id = %s",
            (role_id,),
        )
        return [r[0] for r in await cur.fetchall()]

    async def create(self, assignment: UserRoleAssignment) -> UserRoleAssignment:
        a = assignment
        await self._conn.execute(
            f"INSERT INTO user_role ({_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                a.id,
                a.user_id,
                a.role_id,
                a.assigned_at,
                a.updated_at,
                a.is_active,
                a.effective_from,
                a.effective_until,
                a.assigned_by,
            ),
        )
        return a

    async def update(self, assignment: UserRoleAssignment) -> None:
        a = assignment
        await self._conn.execute(
            "UPDATE user_role SET is_active=%s, effective_from=%s, effective_until=%s, "
            "assigned_by=%s, updated_at=%s WHERE id=%s",
            (a.is_active, a.effective_from, a.effective_until, a.assigned_by, a.updated_at, a.id),
        )

    async def delete(self, assignment_id: UUID) -> None:
        await self._conn.execute("DELETE FROM user_role WHERE id = %s", (assignment_id,))
