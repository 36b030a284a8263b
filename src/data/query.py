"""
DealDesk — Table query builders.

Typed helpers that produce the request payloads the hosted table API
expects: field projection, where clauses, ordering and paging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Operator(str, Enum):
    EQUAL_TO = "EqualTo"
    NOT_EQUAL_TO = "NotEqualTo"
    CONTAINS = "Contains"
    DOES_NOT_CONTAIN = "DoesNotContain"
    GREATER_THAN = "GreaterThan"
    LESS_THAN = "LessThan"


@dataclass
class Where:
    """A single filter clause."""

    field_name: str
    operator: Operator
    values: list[Any]
    include: bool = True

    def to_payload(self) -> dict:
        return {
            "FieldName": self.field_name,
            "Operator": self.operator.value,
            "Values": list(self.values),
            "Include": self.include,
        }


@dataclass
class OrderBy:
    field_name: str
    sort_type: str = "DESC"  # "ASC" | "DESC"

    def to_payload(self) -> dict:
        return {"fieldName": self.field_name, "sorttype": self.sort_type}


@dataclass
class Paging:
    limit: int
    offset: int = 0

    def to_payload(self) -> dict:
        return {"limit": self.limit, "offset": self.offset}


def project_fields(names: list[str] | tuple[str, ...]) -> list[dict]:
    """Build the ``fields`` projection list from plain field names."""
    return [{"field": {"Name": name}} for name in names]


@dataclass
class FetchQuery:
    """Everything a fetch_records call can carry."""

    fields: tuple[str, ...] = ()
    where: list[Where] = field(default_factory=list)
    order_by: list[OrderBy] = field(default_factory=list)
    paging: Paging | None = None

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {"fields": project_fields(self.fields)}
        if self.where:
            payload["where"] = [clause.to_payload() for clause in self.where]
        if self.order_by:
            payload["orderBy"] = [order.to_payload() for order in self.order_by]
        if self.paging is not None:
            payload["pagingInfo"] = self.paging.to_payload()
        return payload
