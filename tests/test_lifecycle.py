import datetime as dt

import pytest

from leave_tracker import lifecycle


def _pending():
    return lifecycle.create_entry(
        entry_id="e1",
        group_id="g1",
        token="t1",
        identity={"employeeId": "jdoe", "email": "jdoe@example.com", "displayName": "Jane Doe"},
        date="2026-05-14",
        leave_type="Leave",
        note="",
        created_at="2026-05-01T09:00:00.000Z",
    )


def test_new_entries_start_pending_with_identity_snapshot():
    entry = _pending()
    assert entry["status"] == lifecycle.PENDING
    assert entry["displayName"] == "Jane Doe"
    assert entry["email"] == "jdoe@example.com"
    assert "approvedAt" not in entry and "rejectedAt" not in entry


def test_display_name_falls_back_to_employee_id():
    entry = lifecycle.create_entry(
        entry_id="e1", group_id="g1", token="t1",
        identity={"employeeId": "jdoe", "email": "jdoe@example.com"},
        date="2026-05-14", leave_type="Leave", note="", created_at="now",
    )
    assert entry["displayName"] == "jdoe"


@pytest.mark.parametrize(
    "status, action, outcome",
    [
        ("pending", "approve", lifecycle.OUTCOME_APPROVED),
        ("pending", "reject", lifecycle.OUTCOME_REJECTED),
        ("approved", "approve", lifecycle.OUTCOME_ALREADY_PROCESSED),
        ("rejected", "approve", lifecycle.OUTCOME_ALREADY_PROCESSED),
        ("rejected", "reject", lifecycle.OUTCOME_ALREADY_PROCESSED),
        ("approved", "reject", lifecycle.OUTCOME_CANNOT_REJECT_APPROVED),
    ],
)
def test_evaluate(status, action, outcome):
    assert lifecycle.evaluate(status, action) == outcome


def test_evaluate_unknown_action():
    with pytest.raises(ValueError):
        lifecycle.evaluate("pending", "cancel")


def test_approve_stamps_audit_fields():
    entry = _pending()
    assert lifecycle.apply_transition(entry, lifecycle.APPROVE, "boss@example.com", "T1")
    assert entry["status"] == lifecycle.APPROVED
    assert entry["approvedAt"] == "T1"
    assert entry["approvedBy"] == "boss@example.com"
    assert lifecycle.processed_at(entry) == "T1"


def test_reject_records_reason():
    entry = _pending()
    lifecycle.apply_transition(entry, lifecycle.REJECT, "boss@example.com", "T1", reason="Team offsite")
    assert entry["status"] == lifecycle.REJECTED
    assert entry["rejectedBy"] == "boss@example.com"
    assert entry["rejectionReason"] == "Team offsite"


def test_terminal_entries_do_not_move():
    entry = _pending()
    lifecycle.apply_transition(entry, lifecycle.APPROVE, "boss", "T1")

    assert not lifecycle.apply_transition(entry, lifecycle.REJECT, "other", "T2")
    assert not lifecycle.apply_transition(entry, lifecycle.APPROVE, "other", "T2")
    assert entry["status"] == lifecycle.APPROVED
    assert entry["approvedAt"] == "T1"
    assert "rejectedAt" not in entry


def test_utc_timestamp_format():
    stamp = lifecycle.utc_timestamp(dt.datetime(2026, 5, 1, 9, 30, tzinfo=dt.timezone.utc))
    assert stamp == "2026-05-01T09:30:00.000Z"
