"""ChangeHistoryEntry entity - immutable ledger record."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from permgov.domain.value_objects import ChangeOperation, HistoryEntityType, Metadata


@dataclass(frozen=True)
class ChangeHistoryEntry:
    """One mutation of a permission-relevant entity. Never updated or deleted."""

    id: UUID
    entity_type: HistoryEntityType
    entity_id: str
    operation: ChangeOperation
    previous_state: dict[str, Any] | None
    new_state: dict[str, Any] | None
    performed_by: str
    created_at: datetime
    metadata: Metadata = field(default_factory=dict)

    @property
    def rollback_of(self) -> str | None:
        """Id of the change this entry rolled back, if it is a rollback."""
        if self.operation != ChangeOperation.ROLLBACK:
            return None
        return self.metadata.get("rollback_of")
