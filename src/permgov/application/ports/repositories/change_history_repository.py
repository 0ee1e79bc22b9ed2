"""Change history repository port."""

from typing import Protocol
from uuid import UUID

from permgov.application.dto.history_dto import HistoryFilters
from permgov.domain.entities import ChangeHistoryEntry


class ChangeHistoryRepository(Protocol):
    """Port for the append-only change ledger. No update, no delete."""

    async def create(self, entry: ChangeHistoryEntry) -> ChangeHistoryEntry: ...

    async def get_by_id(self, change_id: UUID) -> ChangeHistoryEntry | None: ...

    async def list(
        self,
        filters: HistoryFilters,
        *,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChangeHistoryEntry], int]: ...
