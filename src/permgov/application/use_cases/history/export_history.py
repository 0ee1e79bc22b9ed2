"""Export change history use case - JSON or CSV audit export."""

import csv
import io
import json
from datetime import UTC, datetime
from typing import Any

from permgov.application.dto.history_dto import HistoryFilters
from permgov.application.snapshots import history_entry_to_dict
from permgov.domain.entities import ChangeHistoryEntry
from permgov.domain.exceptions import InvalidInput

EXPORT_FORMATS = ("json", "csv")
CSV_HEADERS = ["ID", "Entity Type", "Entity ID", "Operation", "Performed By", "Reason", "Created At"]


def _to_csv(entries: list[ChangeHistoryEntry], include_metadata: bool) -> str:
    """Header row plus one row per entry, every field quoted. Empty export is ""."""
    if not entries:
        return ""
    headers = CSV_HEADERS + (["Metadata"] if include_metadata else [])
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for entry in entries:
        row = [
            str(entry.id),
            entry.entity_type.value,
            entry.entity_id,
            entry.operation.value,
            entry.performed_by,
            entry.metadata.get("reason") or "",
            entry.created_at.isoformat(),
        ]
        if include_metadata:
            row.append(json.dumps(entry.metadata or {}))
        writer.writerow(row)
    return buffer.getvalue().rstrip("\n")


class ExportHistoryUseCase:
    """Export ledger entries matching filters, newest first, up to limit rows."""

    def __init__(self, unit_of_work_factory: type, limit: int = 10000) -> None:
        self._uow_factory = unit_of_work_factory
        self._limit = limit

    async def execute(
        self,
        filters: HistoryFilters | None = None,
        format: str = "json",
        include_metadata: bool = False,
    ) -> dict[str, Any] | str:
        fmt = format.lower()
        if fmt not in EXPORT_FORMATS:
            raise InvalidInput(f"Unsupported export format: {format}")
        filters = filters or HistoryFilters()

        async with self._uow_factory() as uow:
            entries, _ = await uow.change_history.list(filters, offset=0, limit=self._limit)

        if fmt == "csv":
            return _to_csv(entries, include_metadata)
        return {
            "export_date": datetime.now(UTC).isoformat(),
            "total_records": len(entries),
            "filters": filters.to_dict(),
            "data": [history_entry_to_dict(e, include_metadata) for e in entries],
        }
