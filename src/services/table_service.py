"""Generic entity service — CRUD over one hosted table.

Translates application-level calls into TableClientPort requests, splits
batch responses into successes and failures, and converts every failure
into an ``Err`` result after logging it and notifying the user. Nothing in
here raises to the caller.

Subclasses declare the table, its model, the projected and updateable
fields, and how ``get_all`` filters map onto where clauses.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError

from src.data.models import Record, reference_id
from src.data.query import FetchQuery, OrderBy, Paging, Where, project_fields
from src.integrations.apper_client import get_apper_client
from src.ports.table_port import TableClientError
from src.services.results import Err, ErrorKind, FieldError, Ok, Result

if TYPE_CHECKING:
    from src.ports.notification_port import NotificationPort
    from src.ports.table_port import TableClientPort

logger = logging.getLogger(__name__)

SYSTEM_FIELDS = ("CreatedOn", "ModifiedOn")


def _to_wire(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _field_errors(record: dict) -> list[FieldError]:
    errors = []
    for raw in record.get("errors") or []:
        if isinstance(raw, dict):
            errors.append(FieldError(
                field_label=raw.get("fieldLabel", ""),
                message=raw.get("message", ""),
            ))
        else:
            errors.append(FieldError(field_label="", message=str(raw)))
    return errors


class TableService:
    """Base class for the per-entity services."""

    table_name: str = ""
    model: type[Record] = Record
    fields: tuple[str, ...] = ()
    updateable_fields: tuple[str, ...] = ()
    lookup_fields: tuple[str, ...] = ()
    default_order: tuple[OrderBy, ...] = ()
    label: str = "record"
    plural: str = "records"
    # Optional user-facing notices per operation ("create" | "update" | "delete")
    success_messages: dict[str, str] = {}

    def __init__(
        self,
        client: TableClientPort | None = None,
        notifier: NotificationPort | None = None,
        client_factory: Callable[[], TableClientPort | None] = get_apper_client,
    ) -> None:
        self._client = client
        self._notifier = notifier
        self._client_factory = client_factory

    # ------------------------------------------------------------------
    # Request building (override points)
    # ------------------------------------------------------------------

    def filter_clauses(self, filters: dict[str, Any]) -> list[Where]:
        """Map ``get_all`` filters onto where clauses. No filters by default."""
        return []

    def paging(self) -> Paging | None:
        return None

    def build_query(self, filters: dict[str, Any] | None = None) -> FetchQuery:
        return FetchQuery(
            fields=self.fields,
            where=self.filter_clauses(filters or {}),
            order_by=list(self.default_order),
            paging=self.paging(),
        )

    def validate(self, data: dict[str, Any]) -> dict[str, str]:
        """Return ``{field: message}`` for invalid input. Accepts everything by default."""
        return {}

    def keep_value(self, value: Any) -> bool:
        """Whether a provided field value is sent on writes."""
        return True

    def prepare_fields(self, data: dict[str, Any]) -> dict[str, Any]:
        """Keep only updateable fields; lookups become bare integers."""
        prepared: dict[str, Any] = {}
        for name in self.updateable_fields:
            if name not in data or not self.keep_value(data[name]):
                continue
            value = data[name]
            if name in self.lookup_fields:
                value = reference_id(value)
            prepared[name] = _to_wire(value)
        return prepared

    # ------------------------------------------------------------------
    # Public CRUD
    # ------------------------------------------------------------------

    async def get_all(self, filters: dict[str, Any] | None = None) -> Result[list[Record]]:
        return await self.fetch(self.build_query(filters), f"fetching {self.plural}")

    async def get_by_id(self, record_id: int | str) -> Result[Record | None]:
        context = f"fetching {self.label} {record_id}"
        client = self._resolve_client()
        if client is None:
            return await self._not_initialized(context)
        try:
            rid = int(record_id)
        except (TypeError, ValueError):
            return await self._fail(context, Err(ErrorKind.VALIDATION, f"Invalid {self.label} id: {record_id!r}"))

        try:
            response = await client.get_record_by_id(
                self.table_name, rid, {"fields": project_fields(self.fields)},
            )
        except TableClientError as exc:
            return await self._fail(context, Err(ErrorKind.TRANSPORT, str(exc)))

        if not response.get("success"):
            return await self._fail(context, Err(ErrorKind.REMOTE, response.get("message") or "Request failed"))

        raw = response.get("data")
        if not raw:
            return Ok(None)
        return Ok(self._parse(raw))

    async def create(self, data: dict[str, Any]) -> Result[Record]:
        context = f"creating {self.label}"
        problems = self.validate(data)
        if problems:
            return await self._fail(context, Err(
                ErrorKind.VALIDATION,
                "Please fill in all required fields",
                [FieldError(field_label=name, message=msg) for name, msg in problems.items()],
            ))
        payload = {"records": [self.prepare_fields(data)]}
        return await self._write("create", context, payload)

    async def update(self, record_id: int | str, data: dict[str, Any]) -> Result[Record]:
        context = f"updating {self.label} {record_id}"
        try:
            rid = int(record_id)
        except (TypeError, ValueError):
            return await self._fail(context, Err(ErrorKind.VALIDATION, f"Invalid {self.label} id: {record_id!r}"))
        payload = {"records": [{"Id": rid, **self.prepare_fields(data)}]}
        return await self._write("update", context, payload)

    async def delete(self, record_id: int | str) -> Result[bool]:
        context = f"deleting {self.label} {record_id}"
        try:
            rid = int(record_id)
        except (TypeError, ValueError):
            return await self._fail(context, Err(ErrorKind.VALIDATION, f"Invalid {self.label} id: {record_id!r}"))
        return await self._write("delete", context, {"RecordIds": [rid]})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def fetch(self, query: FetchQuery, context: str) -> Result[list[Record]]:
        """Run a fetch_records call and parse every returned record."""
        client = self._resolve_client()
        if client is None:
            return await self._not_initialized(context)

        try:
            response = await client.fetch_records(self.table_name, query.to_payload())
        except TableClientError as exc:
            return await self._fail(context, Err(ErrorKind.TRANSPORT, str(exc)))

        if not response.get("success"):
            return await self._fail(context, Err(ErrorKind.REMOTE, response.get("message") or "Request failed"))

        records = [self._parse(raw) for raw in response.get("data") or []]
        return Ok([r for r in records if r is not None])

    async def _write(self, operation: str, context: str, payload: dict) -> Result:
        client = self._resolve_client()
        if client is None:
            return await self._not_initialized(context)

        call = {
            "create": client.create_record,
            "update": client.update_record,
            "delete": client.delete_record,
        }[operation]

        try:
            response = await call(self.table_name, payload)
        except TableClientError as exc:
            return await self._fail(context, Err(ErrorKind.TRANSPORT, str(exc)))

        if not response.get("success"):
            return await self._fail(context, Err(ErrorKind.REMOTE, response.get("message") or "Request failed"))

        results = response.get("results") or []
        successful = [r for r in results if r.get("success")]
        failed = [r for r in results if not r.get("success")]

        field_errors: list[FieldError] = []
        if failed:
            logger.error("Failed to %s %d %s: %s", operation, len(failed), self.plural, failed)
            for record in failed:
                errors = _field_errors(record)
                field_errors.extend(errors)
                for error in errors:
                    await self._notify_error(str(error))
                if record.get("message"):
                    await self._notify_error(record["message"])

        if not successful:
            first_message = next((r.get("message") for r in failed if r.get("message")), None)
            kind = ErrorKind.VALIDATION if field_errors else ErrorKind.REMOTE
            err = Err(kind, first_message or f"Failed to {operation} {self.label}", field_errors)
            logger.error("Error %s: %s", context, err.message)
            return err

        notice = self.success_messages.get(operation)
        if notice:
            await self._notify_success(notice)

        if operation == "delete":
            return Ok(True)

        created = self._parse(successful[0].get("data") or {})
        if created is None:
            return Err(ErrorKind.REMOTE, f"Backend returned an unreadable {self.label}")
        return Ok(created)

    def _resolve_client(self) -> TableClientPort | None:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _parse(self, raw: dict) -> Record | None:
        try:
            return self.model.model_validate(raw)
        except ValidationError as exc:
            record_id = raw.get("Id") if isinstance(raw, dict) else None
            logger.warning("Skipping malformed %s record %s: %s", self.label, record_id, exc)
            return None

    async def _not_initialized(self, context: str) -> Err:
        return await self._fail(context, Err(ErrorKind.NOT_INITIALIZED, "ApperClient not initialized"))

    async def _fail(self, context: str, err: Err) -> Err:
        logger.error("Error %s: %s", context, err.message)
        await self._notify_error(err.message)
        for error in err.field_errors:
            await self._notify_error(str(error))
        return err

    async def _notify_error(self, text: str) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify_error(text)
        except Exception as exc:
            logger.warning("Failed to deliver notification %r: %s", text, exc)

    async def _notify_success(self, text: str) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify_success(text)
        except Exception as exc:
            logger.warning("Failed to deliver notification %r: %s", text, exc)
