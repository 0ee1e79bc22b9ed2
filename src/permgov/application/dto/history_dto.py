"""Change history DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from permgov.domain.entities import ChangeHistoryEntry
from permgov.domain.exceptions import InvalidInput
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType


@dataclass
class HistoryFilters:
    """Ledger query filters. Date bounds are inclusive."""

    entity_type: HistoryEntityType | None = None
    entity_id: str | None = None
    performed_by: str | None = None
    operation: ChangeOperation | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise InvalidInput("end_date must not be before start_date")

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type.value if self.entity_type else None,
            "entity_id": self.entity_id,
            "performed_by": self.performed_by,
            "operation": self.operation.value if self.operation else None,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass
class HistoryPage:
    """Page of ledger entries, newest first."""

    items: list[ChangeHistoryEntry]
    total: int
    page: int
    limit: int


@dataclass
class StateComparison:
    """Difference between the new_state snapshots of two changes."""

    change_1: ChangeHistoryEntry
    change_2: ChangeHistoryEntry
    added: dict[str, Any] = field(default_factory=dict)
    removed: dict[str, Any] = field(default_factory=dict)
    modified: dict[str, dict[str, Any]] = field(default_factory=dict)
    deep_diff: dict[str, Any] = field(default_factory=dict)
    summary: str = ""

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.modified)
