"""PostgreSQL user directory lookup."""

from psycopg import AsyncConnection


class PostgresUserRepository:
    """Existence check against the users table owned by the identity side."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def exists(self, user_id: str) -> bool:
        cur = await self._conn.execute("SELECT 1 FROM users WHERE id = %s", (user_id,))
        return await cur.fetchone() is not None
