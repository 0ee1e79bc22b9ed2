"""Application ports - interfaces for external adapters."""

from permgov.application.ports.permission_cache import PermissionCache
from permgov.application.ports.permission_checker import PermissionChecker
from permgov.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "PermissionCache",
    "PermissionChecker",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
