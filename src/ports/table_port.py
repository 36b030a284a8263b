"""Table client port — abstract interface for the hosted record tables.

Entity services depend on this protocol, never on a specific transport.
Request and response payloads are passed through as plain dicts; their
shape is owned by the hosting platform.
"""

from __future__ import annotations

from typing import Any, Protocol


class TableClientError(Exception):
    """Raised when a table operation fails at the transport level."""


class TableClientPort(Protocol):
    """Abstract table client used by the entity services."""

    async def fetch_records(self, table: str, params: dict[str, Any]) -> dict: ...

    async def get_record_by_id(
        self, table: str, record_id: int, params: dict[str, Any]
    ) -> dict: ...

    async def create_record(self, table: str, params: dict[str, Any]) -> dict: ...

    async def update_record(self, table: str, params: dict[str, Any]) -> dict: ...

    async def delete_record(self, table: str, params: dict[str, Any]) -> dict: ...
