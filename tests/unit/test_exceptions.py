"""Unit tests for domain exceptions."""

import pytest

from permgov.domain.exceptions import (
    BadRequest,
    CacheFailure,
    Conflict,
    IllegalOperation,
    InvalidInput,
    NotFound,
    PermGovError,
    StorageFailure,
)


@pytest.mark.parametrize(
    "exc_type",
    [NotFound, Conflict, BadRequest, InvalidInput, IllegalOperation, StorageFailure, CacheFailure],
)
def test_every_error_inherits_permgov_error(exc_type) -> None:
    assert issubclass(exc_type, PermGovError)


def test_invalid_input_and_illegal_operation_are_bad_requests() -> None:
    """Both validation and rollback guard failures are BadRequest."""
    assert issubclass(InvalidInput, BadRequest)
    assert issubclass(IllegalOperation, BadRequest)


def test_not_found_message_and_attributes() -> None:
    exc = NotFound("Permission", "abc")
    assert exc.entity == "Permission"
    assert exc.key == "abc"
    assert str(exc) == "Permission abc not found"


def test_not_found_without_key() -> None:
    assert str(NotFound("User")) == "User not found"


def test_storage_failure_keeps_cause() -> None:
    """StorageFailure raised from a driver error keeps it as __cause__."""
    original = RuntimeError("connection reset")
    with pytest.raises(StorageFailure) as info:
        try:
            raise original
        except RuntimeError as exc:
            raise StorageFailure("write failed") from exc
    assert info.value.__cause__ is original
