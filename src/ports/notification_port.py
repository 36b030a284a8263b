"""Notification port — abstract interface for user-facing notices.

Services surface failures (and a few successes) through this protocol,
never through a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Abstract notification interface used by services."""

    async def notify_error(self, text: str) -> None: ...

    async def notify_success(self, text: str) -> None: ...
