"""Opaque structured payloads carried on grants and ledger entries.

The engine never interprets these values. They are stored, snapshotted and
handed back to the caller, who may feed them to its own condition evaluator.
"""

from typing import Any, TypeAlias

Conditions: TypeAlias = dict[str, Any]
Metadata: TypeAlias = dict[str, Any]
