"""Unit tests for ExportHistoryUseCase."""

import csv
import io

import pytest

from permgov.application.dto.grant_dto import GrantPermissionInput
from permgov.application.dto.history_dto import HistoryFilters
from permgov.application.use_cases.history.export_history import CSV_HEADERS, ExportHistoryUseCase
from permgov.domain.exceptions import InvalidInput
from permgov.domain.value_objects import ChangeOperation


async def _seed(store, engine, count: int = 2) -> None:
    store.add_user("u1")
    for i in range(count):
        permission = store.add_permission(f"documents.action{i}")
        await engine.grant_permission.execute(
            "u1",
            GrantPermissionInput(permission_id=permission.id, grant_reason=f"ticket {i}"),
            "admin",
        )


@pytest.mark.asyncio
async def test_json_export(store, engine) -> None:
    await _seed(store, engine)
    filters = HistoryFilters(operation=ChangeOperation.ASSIGN)

    export = await engine.export_history.execute(filters, format="json")

    assert export["total_records"] == 2
    assert export["filters"]["operation"] == "ASSIGN"
    assert "export_date" in export
    first = export["data"][0]
    assert first["id"] == str(store.history[-1].id)
    assert first["operation"] == "ASSIGN"
    assert "metadata" not in first


@pytest.mark.asyncio
async def test_json_export_with_metadata(store, engine) -> None:
    await _seed(store, engine, count=1)
    export = await engine.export_history.execute(include_metadata=True)
    assert export["data"][0]["metadata"]["reason"] == "ticket 0"


@pytest.mark.asyncio
async def test_csv_export(store, engine) -> None:
    await _seed(store, engine)

    output = await engine.export_history.execute(format="CSV", include_metadata=True)

    lines = output.split("\n")
    assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADERS + ["Metadata"])
    rows = list(csv.reader(io.StringIO(output)))
    assert len(rows) == 3
    assert rows[1][0] == str(store.history[-1].id)
    assert rows[1][3] == "ASSIGN"
    assert rows[1][5] == "ticket 1"
    assert '"reason": "ticket 1"' in rows[1][7]


@pytest.mark.asyncio
async def test_csv_export_empty(engine) -> None:
    assert await engine.export_history.execute(format="csv") == ""


@pytest.mark.asyncio
async def test_export_respects_limit(store, engine, uow_factory) -> None:
    await _seed(store, engine, count=3)
    export = await ExportHistoryUseCase(uow_factory, limit=2).execute()
    assert export["total_records"] == 2


@pytest.mark.asyncio
async def test_export_unknown_format(engine) -> None:
    with pytest.raises(InvalidInput, match="xml"):
        await engine.export_history.execute(format="xml")
