"""Apper hosted-table client — implements TableClientPort over HTTPS.

Every operation is a JSON POST to ``{base_url}/tables/{table}/{operation}``
carrying the request payload unchanged; the decoded JSON body is returned
as-is. The response shape (``success``, ``data``, ``results``...) is owned
by the platform and interpreted by the entity services.

Transport problems (connection errors, HTTP error status, non-JSON bodies)
raise TableClientError. A ``success: false`` body is NOT an exception here.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.config import settings
from src.ports.table_port import TableClientError

logger = logging.getLogger(__name__)

_PROJECT_HEADER = "X-Apper-Project-Id"
_KEY_HEADER = "X-Apper-Public-Key"


class ApperClient:
    """HTTP implementation of TableClientPort."""

    def __init__(
        self,
        base_url: str,
        project_id: str,
        public_key: str,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            _PROJECT_HEADER: project_id,
            _KEY_HEADER: public_key,
            "Accept": "application/json",
        }
        self._timeout = timeout

    async def _call(self, table: str, operation: str, payload: dict[str, Any]) -> dict:
        url = f"{self._base_url}/tables/{table}/{operation}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=payload, headers=self._headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Apper %s on %s failed with HTTP %s", operation, table, exc.response.status_code,
            )
            raise TableClientError(
                f"{operation} on {table} failed with HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Apper %s on %s failed: %s", operation, table, exc)
            raise TableClientError(f"{operation} on {table} failed: {exc}") from exc

        if not isinstance(data, dict):
            raise TableClientError(f"{operation} on {table} returned a non-object body")
        return data

    async def fetch_records(self, table: str, params: dict[str, Any]) -> dict:
        return await self._call(table, "fetchRecords", params)

    async def get_record_by_id(
        self, table: str, record_id: int, params: dict[str, Any]
    ) -> dict:
        return await self._call(table, "getRecordById", {"Id": record_id, **params})

    async def create_record(self, table: str, params: dict[str, Any]) -> dict:
        return await self._call(table, "createRecord", params)

    async def update_record(self, table: str, params: dict[str, Any]) -> dict:
        return await self._call(table, "updateRecord", params)

    async def delete_record(self, table: str, params: dict[str, Any]) -> dict:
        return await self._call(table, "deleteRecord", params)


_client: ApperClient | None = None


def get_apper_client() -> ApperClient | None:
    """Return a cached ApperClient, or None when credentials are not configured."""
    global _client
    if _client is not None:
        return _client

    if not settings.apper_configured:
        logger.warning("Apper client requested but APPER_* settings are not configured")
        return None

    _client = ApperClient(
        base_url=settings.APPER_BASE_URL,
        project_id=settings.APPER_PROJECT_ID,
        public_key=settings.APPER_PUBLIC_KEY,
        timeout=settings.APPER_TIMEOUT_SECONDS,
    )
    logger.info("Apper client initialized (project=%s)", settings.APPER_PROJECT_ID)
    return _client
