"""Tests for src.core.validation — quote form rules."""

from src.core.validation import copy_billing_to_shipping, validate_quote


class TestValidateQuote:
    def test_valid_quote(self):
        assert validate_quote({"Name": "Q-1", "quote_date_c": "2025-03-12", "status_c": "Sent"}) == {}

    def test_all_required_missing(self):
        errors = validate_quote({})
        assert errors == {
            "Name": "Quote name is required",
            "quote_date_c": "Quote date is required",
            "status_c": "Status is required",
        }

    def test_whitespace_name_is_blank(self):
        errors = validate_quote({"Name": "   ", "quote_date_c": "2025-03-12", "status_c": "Draft"})
        assert list(errors) == ["Name"]

    def test_unknown_status(self):
        errors = validate_quote({"Name": "Q", "quote_date_c": "2025-03-12", "status_c": "Lost"})
        assert errors["status_c"].startswith("Status must be one of")


class TestCopyBillingToShipping:
    def test_copies_every_part(self):
        data = {
            "billing_name_c": "Acme",
            "billing_street_c": "1 Main",
            "billing_city_c": "Haifa",
            "billing_state_c": "North",
            "billing_country_c": "IL",
            "billing_pincode_c": "3100",
            "shipping_name_c": "old",
        }
        copied = copy_billing_to_shipping(data)
        assert copied["shipping_name_c"] == "Acme"
        assert copied["shipping_pincode_c"] == "3100"
        assert data["shipping_name_c"] == "old"

    def test_missing_billing_becomes_empty(self):
        assert copy_billing_to_shipping({})["shipping_city_c"] == ""
