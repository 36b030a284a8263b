"""Task service — the ``task_c`` table."""

from __future__ import annotations

from typing import Any

from src.data.models import Task
from src.data.query import Operator, OrderBy, Where
from src.services.results import Result
from src.services.table_service import SYSTEM_FIELDS, TableService

TASK_FIELDS = (
    "title_c", "description_c", "due_date_c", "completed_c", "contact_id_c", "deal_id_c",
)


class TaskService(TableService):
    table_name = "task_c"
    model = Task
    fields = TASK_FIELDS + SYSTEM_FIELDS
    updateable_fields = TASK_FIELDS
    lookup_fields = ("contact_id_c", "deal_id_c")
    default_order = (OrderBy("due_date_c", "ASC"),)
    label = "task"
    plural = "tasks"

    def filter_clauses(self, filters: dict[str, Any]) -> list[Where]:
        if filters.get("completed") is None:
            return []
        return [Where("completed_c", Operator.EQUAL_TO, [bool(filters["completed"])])]

    async def complete(self, task_id: int | str) -> Result[Task]:
        """Mark a task as done."""
        return await self.update(task_id, {"completed_c": True})
