"""Domain value objects."""

from permgov.domain.value_objects.change_operation import ChangeOperation
from permgov.domain.value_objects.conditions import Conditions, Metadata
from permgov.domain.value_objects.history_entity_type import HistoryEntityType
from permgov.domain.value_objects.permission_scope import PermissionScope, scope_covers
from permgov.domain.value_objects.permission_source import PermissionSource
from permgov.domain.value_objects.validity_window import (
    ValidityWindow,
    earliest,
    next_boundary,
    window_contains,
)

__all__ = [
    "ChangeOperation",
    "Conditions",
    "HistoryEntityType",
    "Metadata",
    "PermissionScope",
    "PermissionSource",
    "ValidityWindow",
    "earliest",
    "next_boundary",
    "scope_covers",
    "window_contains",
]
