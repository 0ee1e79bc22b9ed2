"""Operations recorded in the change history ledger."""

from enum import StrEnum


class ChangeOperation(StrEnum):
    """Kinds of mutation recorded for permission-relevant entities."""

    ASSIGN = "ASSIGN"
    REVOKE = "REVOKE"
    UPDATE = "UPDATE"
    UPDATE_PRIORITY = "UPDATE_PRIORITY"
    BULK_ASSIGN = "BULK_ASSIGN"
    BULK_REMOVE = "BULK_REMOVE"
    ROLLBACK = "ROLLBACK"
