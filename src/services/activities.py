"""Activity service — the ``activity_c`` table.

Activities are always returned newest first.
"""

from __future__ import annotations

from src.data.models import Activity
from src.data.query import FetchQuery, Operator, OrderBy, Where
from src.services.results import Err, ErrorKind, Result
from src.services.table_service import SYSTEM_FIELDS, TableService

ACTIVITY_FIELDS = ("description_c", "type_c", "timestamp_c", "contact_id_c", "deal_id_c")


class ActivityService(TableService):
    table_name = "activity_c"
    model = Activity
    fields = ACTIVITY_FIELDS + SYSTEM_FIELDS
    updateable_fields = ACTIVITY_FIELDS
    lookup_fields = ("contact_id_c", "deal_id_c")
    default_order = (OrderBy("timestamp_c", "DESC"),)
    label = "activity"
    plural = "activities"

    async def get_by_contact_id(self, contact_id: int | str) -> Result[list[Activity]]:
        return await self._get_by_lookup("contact_id_c", contact_id, f"fetching activities for contact {contact_id}")

    async def get_by_deal_id(self, deal_id: int | str) -> Result[list[Activity]]:
        return await self._get_by_lookup("deal_id_c", deal_id, f"fetching activities for deal {deal_id}")

    async def _get_by_lookup(self, field_name: str, value: int | str, context: str) -> Result[list[Activity]]:
        try:
            lookup = int(value)
        except (TypeError, ValueError):
            return await self._fail(context, Err(ErrorKind.VALIDATION, f"Invalid id: {value!r}"))
        query = FetchQuery(
            fields=self.fields,
            where=[Where(field_name, Operator.EQUAL_TO, [lookup])],
            order_by=list(self.default_order),
        )
        return await self.fetch(query, context)
