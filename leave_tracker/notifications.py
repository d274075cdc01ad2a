"""Fire-and-forget delivery of leave notifications.

The dispatcher hands each notification to a single background worker so the
HTTP response never waits on SMTP. Failures are logged and dropped.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


def group_summary(entries: List[Dict[str, Any]], **extra: Any) -> Dict[str, Any]:
    """Summarise a group of entries for the notification collaborator."""
    first = entries[0]
    dates = sorted(entry["date"] for entry in entries)
    summary = {
        "id": first["id"],
        "groupId": first.get("groupId"),
        "token": first.get("token"),
        "employeeId": first.get("employeeId"),
        "email": first.get("email", ""),
        "displayName": first.get("displayName") or first.get("employeeId"),
        "type": first.get("type"),
        "note": first.get("note", ""),
        "dates": dates,
        "startDate": dates[0],
        "endDate": dates[-1],
        "totalDays": len(dates),
    }
    summary.update(extra)
    return summary


class NotificationDispatcher:
    """Run a notifier's ``notify_*`` methods off the request path."""

    def __init__(self, notifier: Any, synchronous: bool = False) -> None:
        self.notifier = notifier
        self.synchronous = synchronous
        self._executor: Optional[ThreadPoolExecutor] = None
        if not synchronous:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notify")

    def _run(self, name: str, func: Callable[..., Any], *args: Any) -> None:
        try:
            func(*args)
        except Exception:  # noqa: BLE001 - a failed mail never fails the request
            logger.exception("Notification %s failed", name)
        else:
            logger.info("Notification %s delivered", name)

    def _dispatch(self, name: str, *args: Any) -> Optional[Future]:
        func = getattr(self.notifier, name)
        if self._executor is None:
            self._run(name, func, *args)
            return None
        return self._executor.submit(self._run, name, func, *args)

    def notify_submitted(self, summary: Dict[str, Any]) -> Optional[Future]:
        return self._dispatch("notify_submitted", summary)

    def notify_approved(self, summary: Dict[str, Any]) -> Optional[Future]:
        return self._dispatch("notify_approved", summary)

    def notify_rejected(self, summary: Dict[str, Any], reason: str = "") -> Optional[Future]:
        return self._dispatch("notify_rejected", summary, reason)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


__all__ = ["NotificationDispatcher", "group_summary"]
