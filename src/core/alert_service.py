"""
DealDesk — Alert Service.

Loads tasks, activities and contacts concurrently, runs the alert engine
over them and exposes the user's alert actions (dismiss, complete task,
clear dismissals).

Unlike the entity services, failures here propagate: if any of the three
reads fails there are no partial-data alerts, only AlertComputationError.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from src.core.alert_engine import compute_alerts

if TYPE_CHECKING:
    from src.core.alert_engine import Alert
    from src.core.dismissal import DismissalLedger
    from src.services.activities import ActivityService
    from src.services.contacts import ContactService
    from src.services.tasks import TaskService

logger = logging.getLogger(__name__)


class AlertError(Exception):
    """Base class for alert failures the UI must handle."""


class AlertComputationError(AlertError):
    """Raised when the inputs for alert computation could not be loaded."""


class TaskCompletionError(AlertError):
    """Raised when a task could not be marked complete."""


class AlertService:
    """Orchestrates alert loading and alert actions for one session."""

    def __init__(
        self,
        tasks: TaskService,
        activities: ActivityService,
        contacts: ContactService,
        ledger: DismissalLedger,
    ) -> None:
        self._tasks = tasks
        self._activities = activities
        self._contacts = contacts
        self._ledger = ledger

    @property
    def ledger(self) -> DismissalLedger:
        return self._ledger

    async def get_all(self, now: datetime | None = None) -> list[Alert]:
        """Return the current alerts, or raise AlertComputationError."""
        try:
            task_res, activity_res, contact_res = await asyncio.gather(
                self._tasks.get_all(),
                self._activities.get_all(),
                self._contacts.get_all(),
            )
        except Exception as exc:
            logger.error("AlertService.get_all error: %s", exc)
            raise AlertComputationError("Failed to load alerts") from exc

        failed = [res for res in (task_res, activity_res, contact_res) if not res.ok]
        if failed:
            logger.error(
                "AlertService.get_all error: %s", "; ".join(res.message for res in failed),
            )
            raise AlertComputationError("Failed to load alerts")

        return compute_alerts(
            task_res.data, activity_res.data, contact_res.data, self._ledger, now=now,
        )

    async def dismiss_alert(self, alert_id: str) -> None:
        key = self._ledger.dismiss(alert_id)
        logger.info("Alert %s dismissed (key=%s)", alert_id, key)

    async def complete_task(self, task_id: int | str) -> None:
        """Complete the task, then dismiss its key so a stale re-read stays quiet."""
        result = await self._tasks.complete(task_id)
        if not result.ok:
            logger.error("AlertService.complete_task error: %s", result.message)
            raise TaskCompletionError("Failed to complete task")
        self._ledger.dismiss(str(task_id))
        logger.info("Task %s completed from alerts", task_id)

    def clear_dismissed(self) -> None:
        self._ledger.clear()
