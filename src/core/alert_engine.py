"""Alert derivation — pure business logic.

Turns already-loaded tasks, activities and contacts into a prioritized
list of actionable alerts:

- task_overdue      (high)   due date before today
- task_due_today    (medium) due today
- task_due_tomorrow (low)    due tomorrow
- contact_follow_up (medium) see _follow_up_alerts

"Today" is the local calendar day of ``now``. Completed tasks and dismissed
keys never produce alerts.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.core.dismissal import DismissalLedger
    from src.data.models import Activity, Contact, Task

logger = logging.getLogger(__name__)

FOLLOW_UP_WINDOW = timedelta(days=7)
FOLLOW_UP_THRESHOLD_DAYS = 7


class AlertKind(Enum):
    TASK_OVERDUE = "task_overdue"
    TASK_DUE_TODAY = "task_due_today"
    TASK_DUE_TOMORROW = "task_due_tomorrow"
    CONTACT_FOLLOW_UP = "contact_follow_up"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertAction(Enum):
    COMPLETE = "complete"
    DISMISS = "dismiss"


PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}

# Priority is a function of the kind alone.
KIND_PRIORITY = {
    AlertKind.TASK_OVERDUE: Priority.HIGH,
    AlertKind.TASK_DUE_TODAY: Priority.MEDIUM,
    AlertKind.TASK_DUE_TOMORROW: Priority.LOW,
    AlertKind.CONTACT_FOLLOW_UP: Priority.MEDIUM,
}

KIND_PREFIX = {
    AlertKind.TASK_OVERDUE: "overdue",
    AlertKind.TASK_DUE_TODAY: "due-today",
    AlertKind.TASK_DUE_TOMORROW: "due-tomorrow",
    AlertKind.CONTACT_FOLLOW_UP: "follow-up",
}


@dataclass
class Alert:
    """A derived notification. Never persisted."""

    id: str
    kind: AlertKind
    title: str
    message: str
    timestamp: datetime
    actions: list[AlertAction] = field(default_factory=list)
    task: Task | None = None
    contact: Contact | None = None
    activities: list[Activity] = field(default_factory=list)

    @property
    def priority(self) -> Priority:
        return KIND_PRIORITY[self.kind]

    @property
    def task_id(self) -> int | None:
        return self.task.id if self.task is not None else None

    @property
    def contact_id(self) -> int | None:
        return self.contact.id if self.contact is not None else None


def alert_id(kind: AlertKind, entity_id: int) -> str:
    return f"{KIND_PREFIX[kind]}-{entity_id}"


_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_due_date(due: date) -> str:
    """Format a due date like ``Jan 5, 2025``."""
    return f"{_MONTHS[due.month - 1]} {due.day}, {due.year}"


def _midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day)


# ---------------------------------------------------------------------------
# Task rules
# ---------------------------------------------------------------------------


def _task_alerts(task: Task, today: date, dismissed: DismissalLedger) -> list[Alert]:
    if task.completed or task.due_date is None:
        return []

    key = str(task.id)
    if dismissed.is_dismissed(key):
        return []

    due = task.due_date
    stamp = _midnight(due)
    alerts = []

    # Independent guards, not an if/elif chain.
    if due < today:
        alerts.append(Alert(
            id=alert_id(AlertKind.TASK_OVERDUE, task.id),
            kind=AlertKind.TASK_OVERDUE,
            title="Task Overdue",
            message=f'"{task.title}" was due {format_due_date(due)}',
            timestamp=stamp,
            actions=[AlertAction.COMPLETE, AlertAction.DISMISS],
            task=task,
        ))

    if due == today:
        alerts.append(Alert(
            id=alert_id(AlertKind.TASK_DUE_TODAY, task.id),
            kind=AlertKind.TASK_DUE_TODAY,
            title="Task Due Today",
            message=f'"{task.title}" is due today',
            timestamp=stamp,
            actions=[AlertAction.COMPLETE],
            task=task,
        ))

    if due == today + timedelta(days=1):
        alerts.append(Alert(
            id=alert_id(AlertKind.TASK_DUE_TOMORROW, task.id),
            kind=AlertKind.TASK_DUE_TOMORROW,
            title="Task Due Tomorrow",
            message=f'"{task.title}" is due tomorrow',
            timestamp=stamp,
            task=task,
        ))

    return alerts


# ---------------------------------------------------------------------------
# Follow-up rule
# ---------------------------------------------------------------------------


def group_recent_by_contact(
    activities: list[Activity], now: datetime
) -> dict[int, list[Activity]]:
    """Group activities inside ``[now - 7 days, now]`` by contact id, newest first.

    Activities without a timestamp or without a contact are left out.
    """
    since = now - FOLLOW_UP_WINDOW
    recent = [
        a for a in activities
        if a.timestamp is not None and since <= a.timestamp <= now
    ]
    recent.sort(key=lambda a: a.timestamp, reverse=True)

    groups: dict[int, list[Activity]] = {}
    for activity in recent:
        contact_id = activity.contact_id
        if contact_id is None:
            continue
        groups.setdefault(contact_id, []).append(activity)
    return groups


def _follow_up_alerts(
    activities: list[Activity],
    contacts: list[Contact],
    now: datetime,
    dismissed: DismissalLedger,
) -> list[Alert]:
    """Suggest a follow-up for contacts whose latest in-window activity is 7+ days old.

    The window and the threshold are both 7 days, so this only fires for an
    activity sitting exactly on the window's lower edge.
    """
    contacts_by_id = {c.id: c for c in contacts}
    alerts = []

    for contact_id, contact_activities in group_recent_by_contact(activities, now).items():
        key = str(contact_id)
        if dismissed.is_dismissed(key):
            continue

        contact = contacts_by_id.get(contact_id)
        if contact is None:
            logger.debug("Activities reference unknown contact %s", contact_id)
            continue

        latest = contact_activities[0]
        days_since = (now - latest.timestamp) / timedelta(days=1)
        if days_since < FOLLOW_UP_THRESHOLD_DAYS:
            continue

        alerts.append(Alert(
            id=alert_id(AlertKind.CONTACT_FOLLOW_UP, contact_id),
            kind=AlertKind.CONTACT_FOLLOW_UP,
            title="Follow-up Required",
            message=f"No recent activity with {contact.name}",
            timestamp=latest.timestamp,
            actions=[AlertAction.DISMISS],
            contact=contact,
            activities=contact_activities,
        ))

    return alerts


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def sort_alerts(alerts: list[Alert]) -> list[Alert]:
    """Order by priority (high first), then newest timestamp first. Stable."""
    ordered = sorted(alerts, key=lambda a: a.timestamp, reverse=True)
    ordered.sort(key=lambda a: PRIORITY_RANK[a.priority])
    return ordered


def compute_alerts(
    tasks: list[Task],
    activities: list[Activity],
    contacts: list[Contact],
    dismissed: DismissalLedger,
    now: datetime | None = None,
) -> list[Alert]:
    """Derive the prioritized alert list. Inputs are never mutated.

    Args:
        now: Naive local datetime; defaults to the system clock.
    """
    if now is None:
        now = datetime.now()
    today = now.date()

    alerts: list[Alert] = []
    for task in tasks:
        alerts.extend(_task_alerts(task, today, dismissed))
    alerts.extend(_follow_up_alerts(activities, contacts, now, dismissed))

    logger.info(
        "Computed %d alert(s) from %d task(s), %d activit(ies), %d contact(s)",
        len(alerts), len(tasks), len(activities), len(contacts),
    )
    return sort_alerts(alerts)
