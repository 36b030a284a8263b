"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides builders for raw table records and mocked table clients.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("APPER_BASE_URL", "")
os.environ.setdefault("APPER_PROJECT_ID", "")
os.environ.setdefault("APPER_PUBLIC_KEY", "")

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest


# A fixed "now" so date rules don't depend on when the suite runs.
NOW = datetime(2025, 3, 12, 15, 30, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def ledger():
    from src.core.dismissal import DismissalLedger
    return DismissalLedger()


@pytest.fixture
def table_client():
    """A TableClientPort double whose calls all succeed with empty payloads."""
    client = MagicMock()
    client.fetch_records = AsyncMock(return_value={"success": True, "data": []})
    client.get_record_by_id = AsyncMock(return_value={"success": True, "data": None})
    client.create_record = AsyncMock(return_value={"success": True, "results": []})
    client.update_record = AsyncMock(return_value={"success": True, "results": []})
    client.delete_record = AsyncMock(return_value={"success": True, "results": []})
    return client


@pytest.fixture
def notifier():
    n = MagicMock()
    n.notify_error = AsyncMock()
    n.notify_success = AsyncMock()
    return n
