"""Quote service — the ``quote_c`` table.

Quotes are listed most recently modified first, one page at a time, and
can be narrowed by a name search and a status. Writes drop empty values
and are checked against the quote form rules before anything is sent.
"""

from __future__ import annotations

from typing import Any

from src.config import settings
from src.core.validation import validate_quote
from src.data.models import ADDRESS_PARTS, Quote
from src.data.query import Operator, OrderBy, Paging, Where
from src.services.table_service import TableService

_ADDRESS_FIELDS = tuple(
    f"{kind}_{part}_c" for kind in ("billing", "shipping") for part in ADDRESS_PARTS
)

QUOTE_UPDATEABLE_FIELDS = (
    "Name", "Tags", "company_c", "contact_id_c", "deal_id_c",
    "quote_date_c", "status_c", "delivery_method_c", "expires_on_c",
) + _ADDRESS_FIELDS

QUOTE_FIELDS = (
    "Id", "Owner", "CreatedOn", "CreatedBy", "ModifiedOn", "ModifiedBy",
) + QUOTE_UPDATEABLE_FIELDS


class QuoteService(TableService):
    table_name = "quote_c"
    model = Quote
    fields = QUOTE_FIELDS
    updateable_fields = QUOTE_UPDATEABLE_FIELDS
    lookup_fields = ("contact_id_c", "deal_id_c")
    default_order = (OrderBy("ModifiedOn", "DESC"),)
    label = "quote"
    plural = "quotes"
    success_messages = {
        "create": "Quote created successfully",
        "update": "Quote updated successfully",
        "delete": "Quote deleted successfully",
    }

    def __init__(self, *args: Any, page_size: int | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._page_size = page_size or settings.QUOTE_PAGE_SIZE

    def paging(self) -> Paging:
        return Paging(limit=self._page_size, offset=0)

    def filter_clauses(self, filters: dict[str, Any]) -> list[Where]:
        clauses = []
        if filters.get("search"):
            clauses.append(Where("Name", Operator.CONTAINS, [filters["search"]]))
        if filters.get("status"):
            clauses.append(Where("status_c", Operator.EQUAL_TO, [filters["status"]]))
        return clauses

    def keep_value(self, value: Any) -> bool:
        return value is not None and value != ""

    def validate(self, data: dict[str, Any]) -> dict[str, str]:
        return validate_quote(data)
