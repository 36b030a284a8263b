"""
DealDesk — Data Models.

Records arrive from the hosted tables keyed by their table field names
(``title_c``, ``due_date_c``, ...). The models below accept those names,
keep any extra system fields (``CreatedOn``, ``Owner``, ...) and expose
pythonic attribute names to the rest of the code.

Lookup fields (contact/deal references) arrive either as a bare integer or
as an expanded ``{"Id": ..., "Name": ...}`` object; both are normalized into
the ``Reference`` union here, at the data-access boundary.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lookup references
# ---------------------------------------------------------------------------


class IdRef(BaseModel):
    """A lookup transmitted as a bare integer."""

    model_config = ConfigDict(frozen=True)

    id: int


class ExpandedRef(BaseModel):
    """A lookup expanded by the backend into ``{Id, Name}``."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


Reference = Union[IdRef, ExpandedRef]


def parse_reference(raw: Any) -> Reference | None:
    """Build a Reference from any wire shape, or None when empty/unparseable."""
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    if isinstance(raw, (IdRef, ExpandedRef)):
        return raw
    if isinstance(raw, dict):
        ref_id = raw.get("Id", raw.get("id"))
        try:
            return ExpandedRef(id=int(ref_id), name=raw.get("Name") or raw.get("name") or "")
        except (TypeError, ValueError):
            logger.warning("Ignoring lookup without a usable Id: %r", raw)
            return None
    try:
        return IdRef(id=int(raw))
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable lookup value: %r", raw)
        return None


def reference_id(raw: Any) -> int | None:
    """Return the integer id behind a lookup in any of its shapes."""
    ref = parse_reference(raw)
    return ref.id if ref is not None else None


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_datetime(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return to_local_naive(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_local_naive(datetime.fromisoformat(text))


def _parse_date(raw: Any) -> date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return to_local_naive(raw).date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    if "T" in text:
        return _parse_datetime(text).date()
    return date.fromisoformat(text[:10])


def _text(raw: Any) -> str:
    # Text columns come back as null when never filled in
    return "" if raw is None else raw


def _number(raw: Any) -> Any:
    return None if raw == "" else raw


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class Record(BaseModel):
    """Base for all table records: keeps unknown fields, accepts aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int = Field(alias="Id")


class Contact(Record):
    name: str = Field("", alias="name_c")
    email: str | None = Field(None, alias="email_c")
    phone: str | None = Field(None, alias="phone_c")
    company: str | None = Field(None, alias="company_c")
    notes: str | None = Field(None, alias="notes_c")
    tags: str | None = Field(None, alias="tags_c")

    @field_validator("name", mode="before")
    @classmethod
    def parse_name(cls, v: Any) -> str:
        return _text(v)


class Task(Record):
    """A to-do item; ``due_date`` is a calendar date in local time."""

    title: str = Field("", alias="title_c")
    description: str | None = Field(None, alias="description_c")
    due_date: date | None = Field(None, alias="due_date_c")
    completed: bool = Field(False, alias="completed_c")
    contact: Reference | None = Field(None, alias="contact_id_c")
    deal: Reference | None = Field(None, alias="deal_id_c")

    @field_validator("title", mode="before")
    @classmethod
    def parse_title(cls, v: Any) -> str:
        return _text(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> date | None:
        return _parse_date(v)

    @field_validator("completed", mode="before")
    @classmethod
    def parse_completed(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "yes")
        return bool(v)

    @field_validator("contact", "deal", mode="before")
    @classmethod
    def parse_lookup(cls, v: Any) -> Reference | None:
        return parse_reference(v)


class Activity(Record):
    """A logged interaction (call, email, meeting, note)."""

    description: str = Field("", alias="description_c")
    type: str | None = Field(None, alias="type_c")
    timestamp: datetime | None = Field(None, alias="timestamp_c")
    contact: Reference | None = Field(None, alias="contact_id_c")
    deal: Reference | None = Field(None, alias="deal_id_c")

    @field_validator("description", mode="before")
    @classmethod
    def parse_description(cls, v: Any) -> str:
        return _text(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime | None:
        return _parse_datetime(v)

    @field_validator("contact", "deal", mode="before")
    @classmethod
    def parse_lookup(cls, v: Any) -> Reference | None:
        return parse_reference(v)

    @property
    def contact_id(self) -> int | None:
        return self.contact.id if self.contact is not None else None

    @property
    def deal_id(self) -> int | None:
        return self.deal.id if self.deal is not None else None


class Deal(Record):
    title: str = Field("", alias="title_c")
    value: float | None = Field(None, alias="value_c")
    stage: str | None = Field(None, alias="stage_c")
    probability: int | None = Field(None, alias="probability_c")
    expected_close_date: date | None = Field(None, alias="expected_close_date_c")
    contact: Reference | None = Field(None, alias="contact_id_c")

    @field_validator("title", mode="before")
    @classmethod
    def parse_title(cls, v: Any) -> str:
        return _text(v)

    @field_validator("value", "probability", mode="before")
    @classmethod
    def parse_numbers(cls, v: Any) -> Any:
        return _number(v)

    @field_validator("expected_close_date", mode="before")
    @classmethod
    def parse_close_date(cls, v: Any) -> date | None:
        return _parse_date(v)

    @field_validator("contact", mode="before")
    @classmethod
    def parse_lookup(cls, v: Any) -> Reference | None:
        return parse_reference(v)


QUOTE_STATUSES = ("Draft", "Sent", "Accepted", "Rejected")

ADDRESS_PARTS = ("name", "street", "city", "state", "country", "pincode")


class Quote(Record):
    """A priced offer sent to a contact, optionally tied to a deal."""

    name: str = Field("", alias="Name")
    tags: str | None = Field(None, alias="Tags")
    company: str | None = Field(None, alias="company_c")
    contact: Reference | None = Field(None, alias="contact_id_c")
    deal: Reference | None = Field(None, alias="deal_id_c")
    quote_date: date | None = Field(None, alias="quote_date_c")
    status: str | None = Field("Draft", alias="status_c")
    delivery_method: str | None = Field(None, alias="delivery_method_c")
    expires_on: date | None = Field(None, alias="expires_on_c")

    @field_validator("name", mode="before")
    @classmethod
    def parse_name(cls, v: Any) -> str:
        return _text(v)

    @field_validator("company", mode="before")
    @classmethod
    def parse_company(cls, v: Any) -> str | None:
        # company_c is sometimes expanded like a lookup
        if isinstance(v, dict):
            return v.get("Name")
        return v

    @field_validator("quote_date", "expires_on", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> date | None:
        return _parse_date(v)

    @field_validator("contact", "deal", mode="before")
    @classmethod
    def parse_lookup(cls, v: Any) -> Reference | None:
        return parse_reference(v)

    def address(self, kind: str) -> dict[str, str]:
        """Return the billing or shipping address as ``{part: value}``."""
        extra = self.model_extra or {}
        return {part: extra.get(f"{kind}_{part}_c") or "" for part in ADDRESS_PARTS}
