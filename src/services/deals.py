"""Deal service — the ``deal_c`` table."""

from __future__ import annotations

from typing import Any

from src.data.models import Deal
from src.data.query import Operator, OrderBy, Where
from src.services.table_service import SYSTEM_FIELDS, TableService

DEAL_FIELDS = (
    "title_c", "value_c", "stage_c", "probability_c", "expected_close_date_c", "contact_id_c",
)


class DealService(TableService):
    table_name = "deal_c"
    model = Deal
    fields = DEAL_FIELDS + SYSTEM_FIELDS
    updateable_fields = DEAL_FIELDS
    lookup_fields = ("contact_id_c",)
    default_order = (OrderBy("ModifiedOn", "DESC"),)
    label = "deal"
    plural = "deals"

    def filter_clauses(self, filters: dict[str, Any]) -> list[Where]:
        if filters.get("stage"):
            return [Where("stage_c", Operator.EQUAL_TO, [filters["stage"]])]
        return []
