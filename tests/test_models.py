"""Tests for src.data.models — record parsing and lookup references."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.data.models import (
    Activity,
    Contact,
    Deal,
    ExpandedRef,
    IdRef,
    Quote,
    Task,
    parse_reference,
    reference_id,
    to_local_naive,
)


class TestReferences:
    def test_bare_integer(self):
        assert parse_reference(5) == IdRef(id=5)

    def test_numeric_string(self):
        assert parse_reference("5") == IdRef(id=5)

    def test_expanded_object(self):
        ref = parse_reference({"Id": 5, "Name": "Acme"})
        assert isinstance(ref, ExpandedRef)
        assert ref.id == 5
        assert ref.name == "Acme"

    @pytest.mark.parametrize("raw", [5, "5", {"Id": 5, "Name": "Acme"}, {"Id": "5"}])
    def test_reference_id_uniform(self, raw):
        assert reference_id(raw) == 5

    @pytest.mark.parametrize("raw", [None, "", "abc", {"Name": "no id"}, True])
    def test_empty_or_invalid_is_none(self, raw):
        assert parse_reference(raw) is None
        assert reference_id(raw) is None

    def test_existing_reference_passes_through(self):
        ref = ExpandedRef(id=1, name="x")
        assert parse_reference(ref) is ref


class TestTask:
    def test_parses_table_fields(self):
        task = Task.model_validate({
            "Id": 1,
            "title_c": "Renew contract",
            "due_date_c": "2025-03-11",
            "completed_c": False,
            "contact_id_c": {"Id": 5, "Name": "Acme"},
            "CreatedOn": "2025-01-01T10:00:00Z",
        })
        assert task.id == 1
        assert task.title == "Renew contract"
        assert task.due_date == date(2025, 3, 11)
        assert task.completed is False
        assert task.contact == ExpandedRef(id=5, name="Acme")
        assert task.model_extra["CreatedOn"] == "2025-01-01T10:00:00Z"

    def test_missing_due_date(self):
        assert Task.model_validate({"Id": 1}).due_date is None

    def test_string_completion_flag(self):
        assert Task.model_validate({"Id": 1, "completed_c": "true"}).completed is True
        assert Task.model_validate({"Id": 1, "completed_c": "false"}).completed is False

    def test_invalid_due_date_rejected(self):
        with pytest.raises(ValidationError):
            Task.model_validate({"Id": 1, "due_date_c": "not a date"})

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            Task.model_validate({"title_c": "orphan"})


class TestActivity:
    def test_naive_timestamp_kept(self):
        activity = Activity.model_validate({"Id": 1, "timestamp_c": "2025-03-05T15:30:00"})
        assert activity.timestamp == datetime(2025, 3, 5, 15, 30)

    def test_utc_timestamp_becomes_local_naive(self):
        activity = Activity.model_validate({"Id": 1, "timestamp_c": "2025-03-05T15:30:00Z"})
        expected = datetime(2025, 3, 5, 15, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert activity.timestamp == expected
        assert activity.timestamp.tzinfo is None

    def test_lookup_ids(self):
        activity = Activity.model_validate({"Id": 1, "contact_id_c": 5, "deal_id_c": {"Id": 9}})
        assert activity.contact_id == 5
        assert activity.deal_id == 9

    def test_no_lookups(self):
        activity = Activity.model_validate({"Id": 1})
        assert activity.contact_id is None
        assert activity.deal_id is None


class TestContactAndDeal:
    def test_contact_fields(self):
        contact = Contact.model_validate({"Id": 5, "name_c": "Acme", "email_c": "hi@acme.test"})
        assert contact.name == "Acme"
        assert contact.email == "hi@acme.test"

    def test_populate_by_name(self):
        assert Contact(id=3, name="Dana").name == "Dana"

    def test_deal_fields(self):
        deal = Deal.model_validate({
            "Id": 2, "title_c": "Renewal", "value_c": 1200.5,
            "expected_close_date_c": "2025-04-01", "contact_id_c": "5",
        })
        assert deal.value == 1200.5
        assert deal.expected_close_date == date(2025, 4, 1)
        assert deal.contact == IdRef(id=5)


class TestQuote:
    def test_expanded_company(self):
        quote = Quote.model_validate({"Id": 1, "Name": "Q-1", "company_c": {"Id": 3, "Name": "Acme"}})
        assert quote.company == "Acme"

    def test_address(self):
        quote = Quote.model_validate({
            "Id": 1,
            "billing_name_c": "Acme",
            "billing_city_c": "Haifa",
        })
        billing = quote.address("billing")
        assert billing["name"] == "Acme"
        assert billing["city"] == "Haifa"
        assert billing["street"] == ""
        assert quote.address("shipping")["name"] == ""

    def test_default_status(self):
        assert Quote.model_validate({"Id": 1}).status == "Draft"


class TestToLocalNaive:
    def test_naive_unchanged(self):
        value = datetime(2025, 1, 1, 12)
        assert to_local_naive(value) is value

    def test_aware_converted(self):
        value = datetime(2025, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert to_local_naive(value).tzinfo is None


class TestNullText:
    @pytest.mark.parametrize("model, alias, attr", [
        (Contact, "name_c", "name"),
        (Task, "title_c", "title"),
        (Activity, "description_c", "description"),
        (Deal, "title_c", "title"),
        (Quote, "Name", "name"),
    ])
    def test_null_becomes_empty_string(self, model, alias, attr):
        record = model.model_validate({"Id": 1, alias: None})
        assert getattr(record, attr) == ""
