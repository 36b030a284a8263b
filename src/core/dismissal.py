"""Dismissal ledger — session-scoped memory of acknowledged alerts.

Keys are alert ids with their kind prefix stripped, so ``overdue-42`` and
``due-today-42`` both dismiss the alerts of entity 42. The ledger lives
only as long as its owner (one per chat session) and is never persisted.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^(overdue|due-today|due-tomorrow|follow-up)-")


def normalize_key(alert_id: str) -> str:
    """Strip one recognized kind prefix from an alert id."""
    return _PREFIX_RE.sub("", str(alert_id), count=1)


class DismissalLedger:
    """Set of dismissed alert keys with an explicit lifecycle."""

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def dismiss(self, alert_id: str) -> str:
        """Record a dismissal and return the stored key. Idempotent."""
        key = normalize_key(alert_id)
        if key not in self._keys:
            self._keys.add(key)
            logger.debug("Dismissed alert key %s", key)
        return key

    def is_dismissed(self, key: str) -> bool:
        return str(key) in self._keys

    def clear(self) -> None:
        logger.info("Clearing %d dismissed alert key(s)", len(self._keys))
        self._keys.clear()

    def __contains__(self, key: object) -> bool:
        return str(key) in self._keys

    def __len__(self) -> int:
        return len(self._keys)
