"""Status transitions for leave entries.

``pending`` is the only state that moves; ``approved`` and ``rejected`` are
terminal. Replaying a decision on a terminal entry is reported, not applied.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Optional


PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

TERMINAL_STATES = frozenset({APPROVED, REJECTED})

APPROVE = "approve"
REJECT = "reject"

# Outcomes of asking an entry to take a decision.
OUTCOME_APPROVED = "approved"
OUTCOME_REJECTED = "rejected"
OUTCOME_ALREADY_PROCESSED = "already_processed"
OUTCOME_CANNOT_REJECT_APPROVED = "cannot_reject_approved"

_TARGET_STATE = {APPROVE: APPROVED, REJECT: REJECTED}
_STAMP_FIELDS = {
    APPROVE: ("approvedAt", "approvedBy"),
    REJECT: ("rejectedAt", "rejectedBy"),
}


def utc_timestamp(now: Optional[dt.datetime] = None) -> str:
    now = now or dt.datetime.now(dt.timezone.utc)
    return now.astimezone(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def status_of(entry: Dict[str, Any]) -> str:
    return str(entry.get("status") or PENDING).lower()


def create_entry(
    *,
    entry_id: str,
    group_id: str,
    token: str,
    identity: Dict[str, Any],
    date: str,
    leave_type: str,
    note: str,
    created_at: str,
) -> Dict[str, Any]:
    """Build a new pending entry.

    The submitter's identity is copied onto the entry so it keeps showing the
    name and address valid at submission time.
    """
    return {
        "id": entry_id,
        "groupId": group_id,
        "token": token,
        "date": date,
        "type": leave_type,
        "employeeId": identity["employeeId"],
        "email": identity.get("email", ""),
        "displayName": identity.get("displayName") or identity["employeeId"],
        "note": note,
        "status": PENDING,
        "createdAt": created_at,
    }


def evaluate(status: str, action: str) -> str:
    """Return the outcome of ``action`` on an entry in ``status``."""
    if action not in _TARGET_STATE:
        raise ValueError(f"Unknown action '{action}'")
    if status == PENDING:
        return OUTCOME_APPROVED if action == APPROVE else OUTCOME_REJECTED
    if action == REJECT and status == APPROVED:
        return OUTCOME_CANNOT_REJECT_APPROVED
    return OUTCOME_ALREADY_PROCESSED


def apply_transition(
    entry: Dict[str, Any],
    action: str,
    actor: str,
    at: str,
    reason: Optional[str] = None,
) -> bool:
    """Move a pending entry to the target state and stamp the audit fields.

    Entries that are already terminal are left untouched and ``False`` is
    returned.
    """
    if status_of(entry) != PENDING:
        return False
    at_field, by_field = _STAMP_FIELDS[action]
    entry["status"] = _TARGET_STATE[action]
    entry[at_field] = at
    entry[by_field] = actor
    if action == REJECT and reason:
        entry["rejectionReason"] = reason
    return True


def processed_at(entry: Dict[str, Any]) -> Optional[str]:
    """Timestamp of the terminal transition, if any."""
    status = status_of(entry)
    if status == APPROVED:
        return entry.get("approvedAt")
    if status == REJECTED:
        return entry.get("rejectedAt")
    return None


__all__ = [
    "APPROVE",
    "APPROVED",
    "OUTCOME_ALREADY_PROCESSED",
    "OUTCOME_APPROVED",
    "OUTCOME_CANNOT_REJECT_APPROVED",
    "OUTCOME_REJECTED",
    "PENDING",
    "REJECT",
    "REJECTED",
    "TERMINAL_STATES",
    "apply_transition",
    "create_entry",
    "evaluate",
    "processed_at",
    "status_of",
    "utc_timestamp",
]
