"""Business logic for submitting and deciding leave requests."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from . import lifecycle, policy
from .errors import ValidationError
from .notifications import group_summary
from .storage import EntryStore
from .tokens import TokenScope, new_id, new_token


logger = logging.getLogger(__name__)

NO_DATES_ACCEPTED = "no_dates_accepted"
NOT_FOUND = "not_found"
DEFAULT_ACTOR = "Manager"


@dataclass
class BatchResult:
    created: List[Dict[str, Any]]
    skipped: List[Dict[str, str]]
    group_id: Optional[str] = None
    token: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.created)

    @property
    def outcome(self) -> str:
        return "created" if self.ok else NO_DATES_ACCEPTED

    @property
    def message(self) -> str:
        if self.ok:
            return f"Saved {len(self.created)} date(s). Skipped {len(self.skipped)}."
        if self.skipped:
            return "No dates were saved. All selected dates were skipped (duplicates/weekends/past)."
        return "No dates were saved."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "outcome": self.outcome,
            "message": self.message,
            "createdCount": len(self.created),
            "skippedCount": len(self.skipped),
            "created": [
                {"id": e["id"], "date": e["date"], "type": e["type"], "status": e["status"]}
                for e in self.created
            ],
            "skipped": list(self.skipped),
            "groupId": self.group_id if self.ok else None,
            "token": self.token if self.ok else None,
        }


@dataclass
class DecisionResult:
    """What happened when a token was used to approve or reject."""

    outcome: str
    entries: List[Dict[str, Any]] = field(default_factory=list)
    reason: str = ""

    @property
    def status(self) -> Optional[str]:
        return lifecycle.status_of(self.entries[0]) if self.entries else None

    @property
    def dates(self) -> List[str]:
        return sorted(entry["date"] for entry in self.entries)

    @property
    def processed_at(self) -> Optional[str]:
        return lifecycle.processed_at(self.entries[0]) if self.entries else None

    def to_dict(self) -> Dict[str, Any]:
        first = self.entries[0] if self.entries else {}
        return {
            "ok": self.outcome not in {NOT_FOUND, lifecycle.OUTCOME_CANNOT_REJECT_APPROVED},
            "outcome": self.outcome,
            "status": self.status,
            "processedAt": self.processed_at,
            "employee": first.get("displayName") or first.get("email"),
            "type": first.get("type"),
            "dates": self.dates,
            "totalDays": len(self.entries),
            "reason": self.reason or None,
        }


def _server_today() -> dt.date:
    return dt.date.today()


def validate_submission(identity: Dict[str, Any], leave_type: Any, dates: Any) -> List[str]:
    """Check the request shape and return the candidate dates as strings."""
    if not identity or not identity.get("employeeId") or not identity.get("email"):
        raise ValidationError("A signed-in employee is required to submit leave")
    if not str(leave_type or "").strip():
        raise ValidationError("Missing type")
    if not isinstance(dates, (list, tuple)) or not dates:
        raise ValidationError("No dates provided")
    return [str(date).strip() for date in dates]


def submit_batch(
    store: EntryStore,
    notifier: Any,
    identity: Dict[str, Any],
    leave_type: str,
    note: Optional[str],
    dates: Sequence[str],
    today: Optional[dt.date] = None,
) -> BatchResult:
    """Create one pending entry per admissible date.

    Every date is checked against the entries on disk when the call starts
    plus the entries this call has already admitted. Nothing is written when
    no date is admitted. The submission mail is queued after the write.
    """
    candidates = validate_submission(identity, leave_type, dates)
    leave_type = str(leave_type).strip()
    note = str(note or "").strip()
    today = today or _server_today()

    group_id = new_id()
    token = new_token()
    created: List[Dict[str, Any]] = []
    skipped: List[Dict[str, str]] = []

    with store.locked():
        entries = store.load_all()
        created_at = lifecycle.utc_timestamp()
        for date_str in candidates:
            reason = policy.rejection_reason(entries, identity["employeeId"], date_str, today)
            if reason:
                skipped.append({"date": date_str, "reason": reason})
                continue
            entry = lifecycle.create_entry(
                entry_id=new_id(),
                group_id=group_id,
                token=token,
                identity=identity,
                date=date_str,
                leave_type=leave_type,
                note=note,
                created_at=created_at,
            )
            entries.append(entry)
            created.append(entry)

        if not created:
            logger.info(
                "No dates accepted for %s; skipped %d", identity["employeeId"], len(skipped)
            )
            return BatchResult(created=[], skipped=skipped)

        store.save_all(entries)

    logger.info(
        "Saved %d date(s) for %s in group %s; skipped %d",
        len(created),
        identity["employeeId"],
        group_id,
        len(skipped),
    )
    notifier.notify_submitted(group_summary(created))
    return BatchResult(created=created, skipped=skipped, group_id=group_id, token=token)


def resolve_by_token(store: EntryStore, token: str) -> List[Dict[str, Any]]:
    return TokenScope(store.load_all()).resolve(token)


def _decide(
    store: EntryStore,
    notifier: Any,
    token: str,
    action: str,
    actor: Optional[str],
    reason: str = "",
) -> DecisionResult:
    actor = actor or DEFAULT_ACTOR
    reason = (reason or "").strip()

    with store.locked():
        entries = store.load_all()
        group = TokenScope(entries).resolve(token)
        if not group:
            logger.info("Token did not match any entry (%s)", action)
            return DecisionResult(outcome=NOT_FOUND)

        outcome = lifecycle.evaluate(lifecycle.status_of(group[0]), action)
        if outcome in {lifecycle.OUTCOME_ALREADY_PROCESSED, lifecycle.OUTCOME_CANNOT_REJECT_APPROVED}:
            logger.info(
                "Group %s is already %s; %s ignored",
                group[0].get("groupId"),
                lifecycle.status_of(group[0]),
                action,
            )
            return DecisionResult(outcome=outcome, entries=group)

        at = lifecycle.utc_timestamp()
        for entry in group:
            lifecycle.apply_transition(entry, action, actor, at, reason=reason)
        store.save_all(entries)

    logger.info("Group %s %s by %s", group[0].get("groupId"), outcome, actor)
    if action == lifecycle.APPROVE:
        notifier.notify_approved(group_summary(group, approvedBy=actor))
    else:
        notifier.notify_rejected(group_summary(group, rejectedBy=actor), reason)
    return DecisionResult(outcome=outcome, entries=group, reason=reason)


def approve(store: EntryStore, notifier: Any, token: str, actor: Optional[str] = None) -> DecisionResult:
    return _decide(store, notifier, token, lifecycle.APPROVE, actor)


def reject(
    store: EntryStore,
    notifier: Any,
    token: str,
    actor: Optional[str] = None,
    reason: str = "",
) -> DecisionResult:
    return _decide(store, notifier, token, lifecycle.REJECT, actor, reason)


def list_entries(
    store: EntryStore,
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    results = []
    for entry in store.load_all():
        if employee_id and entry.get("employeeId") != employee_id:
            continue
        if status and lifecycle.status_of(entry) != status.lower():
            continue
        results.append(entry)
    return results


__all__ = [
    "BatchResult",
    "DEFAULT_ACTOR",
    "DecisionResult",
    "NOT_FOUND",
    "NO_DATES_ACCEPTED",
    "approve",
    "list_entries",
    "reject",
    "resolve_by_token",
    "submit_batch",
    "validate_submission",
]
