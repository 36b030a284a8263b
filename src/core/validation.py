"""Quote form rules — pure field validation.

No I/O: this module only inspects and transforms plain dicts keyed by the
quote table's field names.
"""

from __future__ import annotations

from typing import Any

from src.data.models import ADDRESS_PARTS, QUOTE_STATUSES


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_quote(data: dict[str, Any]) -> dict[str, str]:
    """Return ``{field: message}`` for every rule the quote breaks."""
    errors: dict[str, str] = {}

    if _blank(data.get("Name")):
        errors["Name"] = "Quote name is required"

    if _blank(data.get("quote_date_c")):
        errors["quote_date_c"] = "Quote date is required"

    status = data.get("status_c")
    if _blank(status):
        errors["status_c"] = "Status is required"
    elif status not in QUOTE_STATUSES:
        errors["status_c"] = f"Status must be one of: {', '.join(QUOTE_STATUSES)}"

    return errors


def copy_billing_to_shipping(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` whose shipping address mirrors the billing one."""
    copied = dict(data)
    for part in ADDRESS_PARTS:
        copied[f"shipping_{part}_c"] = data.get(f"billing_{part}_c", "")
    return copied
