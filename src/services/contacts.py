"""Contact service — the ``contact_c`` table."""

from __future__ import annotations

from typing import Any

from src.data.models import Contact
from src.data.query import Operator, Where
from src.services.table_service import SYSTEM_FIELDS, TableService

CONTACT_FIELDS = ("name_c", "email_c", "phone_c", "company_c", "notes_c", "tags_c")


class ContactService(TableService):
    table_name = "contact_c"
    model = Contact
    fields = CONTACT_FIELDS + SYSTEM_FIELDS
    updateable_fields = CONTACT_FIELDS
    label = "contact"
    plural = "contacts"

    def filter_clauses(self, filters: dict[str, Any]) -> list[Where]:
        if filters.get("search"):
            return [Where("name_c", Operator.CONTAINS, [filters["search"]])]
        return []
