"""JSON-compatible snapshots of entities.

Snapshots are what the ledger stores as previous_state / new_state and what
the cache stores as values. Datetimes become ISO-8601 strings and UUIDs become
strings, so a snapshot survives a round trip through JSON unchanged.
"""

from dataclasses import fields
from datetime import datetime
from typing import Any
from uuid import UUID

from permgov.domain.entities import (
    ChangeHistoryEntry,
    EffectivePermission,
    EffectivePermissionSet,
    PermissionSources,
    RolePermission,
    UserPermissionGrant,
    UserRoleAssignment,
)
from permgov.domain.exceptions import IllegalOperation
from permgov.domain.value_objects import HistoryEntityType, PermissionSource

_UUID_FIELDS = {"id", "role_id", "permission_id"}
_DATETIME_FIELDS = {
    "created_at",
    "updated_at",
    "assigned_at",
    "valid_from",
    "valid_until",
    "effective_from",
    "effective_until",
}

_ENTITY_CLASSES: dict[HistoryEntityType, type] = {
    HistoryEntityType.USER_PERMISSION: UserPermissionGrant,
    HistoryEntityType.USER_ROLE: UserRoleAssignment,
    HistoryEntityType.ROLE_PERMISSION: RolePermission,
}


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _parse_uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


def snapshot(entity: Any) -> dict[str, Any]:
    """Snapshot a grant, assignment or role permission."""
    return {f.name: _encode(getattr(entity, f.name)) for f in fields(entity)}


def restore(entity_type: HistoryEntityType, state: dict[str, Any]) -> Any:
    """Rebuild the entity recorded in a snapshot."""
    cls = _ENTITY_CLASSES.get(entity_type)
    if cls is None:
        raise IllegalOperation(f"Cannot restore entity type {entity_type}")
    known = {f.name for f in fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in state.items():
        if key not in known:
            continue
        if key in _UUID_FIELDS:
            kwargs[key] = _parse_uuid(value)
        elif key in _DATETIME_FIELDS:
            kwargs[key] = _parse_datetime(value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def effective_set_to_dict(effective: EffectivePermissionSet) -> dict[str, Any]:
    """Cacheable form of an effective permission set."""

    def _entry(perm: EffectivePermission) -> dict[str, Any]:
        return {
            "permission_id": str(perm.permission_id),
            "code": perm.code,
            "resource": perm.resource,
            "action": perm.action,
            "scope": perm.scope,
            "source": perm.source.value,
            "is_granted": perm.is_granted,
            "priority": perm.priority,
            "role_id": _encode(perm.role_id),
            "role_name": perm.role_name,
            "valid_until": _encode(perm.valid_until),
            "is_temporary": perm.is_temporary,
            "conditions": perm.conditions,
        }

    return {
        "user_id": effective.user_id,
        "computed_at": effective.computed_at.isoformat(),
        "permissions": [_entry(p) for p in effective.permissions.values()],
        "denied": [_entry(p) for p in effective.denied.values()],
        "sources": {
            "direct_user": effective.sources.direct_user,
            "from_roles": effective.sources.from_roles,
        },
    }


def effective_set_from_dict(data: dict[str, Any]) -> EffectivePermissionSet:
    """Inverse of effective_set_to_dict."""

    def _entry(raw: dict[str, Any]) -> EffectivePermission:
        return EffectivePermission(
            permission_id=UUID(raw["permission_id"]),
            code=raw["code"],
            resource=raw["resource"],
            action=raw["action"],
            scope=raw.get("scope"),
            source=PermissionSource(raw["source"]),
            is_granted=raw["is_granted"],
            priority=raw.get("priority"),
            role_id=_parse_uuid(raw.get("role_id")),
            role_name=raw.get("role_name"),
            valid_until=_parse_datetime(raw.get("valid_until")),
            is_temporary=raw.get("is_temporary", False),
            conditions=raw.get("conditions"),
        )

    granted = [_entry(raw) for raw in data["permissions"]]
    denied = [_entry(raw) for raw in data["denied"]]
    sources = data.get("sources", {})
    return EffectivePermissionSet(
        user_id=data["user_id"],
        permissions={p.permission_id: p for p in granted},
        denied={p.permission_id: p for p in denied},
        computed_at=datetime.fromisoformat(data["computed_at"]),
        sources=PermissionSources(
            direct_user=sources.get("direct_user", 0),
            from_roles=sources.get("from_roles", 0),
        ),
    )


def history_entry_to_dict(entry: ChangeHistoryEntry, include_metadata: bool = True) -> dict[str, Any]:
    """Export form of a ledger entry."""
    data = {
        "id": str(entry.id),
        "entity_type": entry.entity_type.value,
        "entity_id": entry.entity_id,
        "operation": entry.operation.value,
        "previous_state": entry.previous_state,
        "new_state": entry.new_state,
        "performed_by": entry.performed_by,
        "created_at": entry.created_at.isoformat(),
    }
    if include_metadata:
        data["metadata"] = entry.metadata
    return data
