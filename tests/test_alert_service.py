"""Tests for src.core.alert_service — concurrent loading and alert actions.

The entity services are mocked; no table client anywhere in this file.
"""

import asyncio
from datetime import datetime, timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.core.alert_service import AlertComputationError, AlertService, TaskCompletionError
from src.core.dismissal import DismissalLedger
from src.data.models import Task
from src.services.results import Err, ErrorKind, Ok

NOW = datetime(2025, 3, 12, 15, 30, 0)
YESTERDAY = (NOW - timedelta(days=1)).date().isoformat()


def _stale_task(task_id=42):
    return Task.model_validate({
        "Id": task_id, "title_c": "Renew contract", "due_date_c": YESTERDAY, "completed_c": False,
    })


def _make_service(tasks=None, activities=None, contacts=None, ledger=None):
    task_svc = MagicMock()
    task_svc.get_all = AsyncMock(return_value=tasks if tasks is not None else Ok([]))
    task_svc.complete = AsyncMock(return_value=Ok(MagicMock()))
    activity_svc = MagicMock()
    activity_svc.get_all = AsyncMock(return_value=activities if activities is not None else Ok([]))
    contact_svc = MagicMock()
    contact_svc.get_all = AsyncMock(return_value=contacts if contacts is not None else Ok([]))
    service = AlertService(task_svc, activity_svc, contact_svc, ledger if ledger is not None else DismissalLedger())
    return service, task_svc


class TestGetAll:
    @pytest.mark.asyncio
    async def test_computes_alerts_from_all_three_reads(self):
        service, _ = _make_service(tasks=Ok([_stale_task(1)]))
        alerts = await service.get_all(now=NOW)
        assert [a.id for a in alerts] == ["overdue-1"]

    @pytest.mark.asyncio
    async def test_reads_run_concurrently(self):
        started = []
        gate = asyncio.Event()

        async def _read(name):
            started.append(name)
            if len(started) == 3:
                gate.set()
            await asyncio.wait_for(gate.wait(), timeout=1)
            return Ok([])

        async def _tasks():
            return await _read("tasks")

        async def _activities():
            return await _read("activities")

        async def _contacts():
            return await _read("contacts")

        service, task_svc = _make_service()
        task_svc.get_all = AsyncMock(side_effect=_tasks)
        service._activities.get_all = AsyncMock(side_effect=_activities)
        service._contacts.get_all = AsyncMock(side_effect=_contacts)

        assert await service.get_all(now=NOW) == []
        assert sorted(started) == ["activities", "contacts", "tasks"]

    @pytest.mark.asyncio
    async def test_any_failed_read_fails_everything(self):
        service, _ = _make_service(
            tasks=Ok([_stale_task(1)]),
            contacts=Err(ErrorKind.TRANSPORT, "timeout"),
        )
        with pytest.raises(AlertComputationError, match="Failed to load alerts"):
            await service.get_all(now=NOW)

    @pytest.mark.asyncio
    async def test_raised_exception_is_wrapped(self):
        service, task_svc = _make_service()
        task_svc.get_all = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(AlertComputationError):
            await service.get_all(now=NOW)


class TestDismissAlert:
    @pytest.mark.asyncio
    async def test_dismiss_then_recompute(self):
        ledger = DismissalLedger()
        service, _ = _make_service(tasks=Ok([_stale_task(42)]), ledger=ledger)

        await service.dismiss_alert("overdue-42")

        assert ledger.is_dismissed("42")
        assert await service.get_all(now=NOW) == []

    @pytest.mark.asyncio
    async def test_clear_dismissed(self):
        ledger = DismissalLedger()
        service, _ = _make_service(tasks=Ok([_stale_task(42)]), ledger=ledger)
        await service.dismiss_alert("overdue-42")

        service.clear_dismissed()

        assert [a.id for a in await service.get_all(now=NOW)] == ["overdue-42"]


class TestCompleteTask:
    @pytest.mark.asyncio
    async def test_stale_snapshot_stays_suppressed(self):
        # The task store still reports the task as open.
        service, task_svc = _make_service(tasks=Ok([_stale_task(42)]))

        await service.complete_task(42)

        task_svc.complete.assert_awaited_once_with(42)
        assert await service.get_all(now=NOW) == []

    @pytest.mark.asyncio
    async def test_failure_raises_and_does_not_dismiss(self):
        ledger = DismissalLedger()
        service, task_svc = _make_service(ledger=ledger)
        task_svc.complete = AsyncMock(return_value=Err(ErrorKind.REMOTE, "Locked"))

        with pytest.raises(TaskCompletionError, match="Failed to complete task"):
            await service.complete_task(42)
        assert not ledger.is_dismissed("42")
