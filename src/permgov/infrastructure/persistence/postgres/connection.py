"""PostgreSQL async connection pool."""

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool


def create_pool(conninfo: str, min_size: int = 2, max_size: int = 10) -> AsyncConnectionPool:
    """Create async connection pool.

    Pool is created with open=False. Caller must call await pool.open()
    before use (PermGovEngine.open does this).
    """
    return AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
    )


def to_jsonb(value: dict | list | None) -> Jsonb | None:
    """Adapt a JSON-compatible value for a jsonb column. None stays SQL NULL."""
    return Jsonb(value) if value is not None else None
