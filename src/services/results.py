"""Service results — explicit outcome of every entity-service call.

Entity services never raise to their caller. They return ``Ok(data)`` or
``Err(kind, message)``, and the UI decides how to degrade (empty list,
placeholder, error banner).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    NOT_INITIALIZED = "not_initialized"  # no table client configured
    TRANSPORT = "transport"              # network / HTTP failure
    REMOTE = "remote"                    # backend answered success=false
    VALIDATION = "validation"            # rejected before or by the backend


@dataclass
class FieldError:
    field_label: str
    message: str

    def __str__(self) -> str:
        return f"{self.field_label}: {self.message}"


@dataclass
class Ok(Generic[T]):
    data: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap_or(self, default: Any) -> T:
        return self.data


@dataclass
class Err:
    kind: ErrorKind
    message: str
    field_errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False

    def unwrap_or(self, default: Any) -> Any:
        return default


Result = Union[Ok[T], Err]
