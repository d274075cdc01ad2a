import datetime as dt

import pytest

from leave_tracker import create_app, leave_service
from leave_tracker.storage import EntryStore


# A Wednesday. 2026-05-14/15 are Thu/Fri, 16/17 the weekend, 18 a Monday.
TODAY = dt.date(2026, 5, 13)


class RecordingNotifier:
    """Collects notifications instead of sending mail."""

    def __init__(self):
        self.calls = []

    def notify_submitted(self, summary):
        self.calls.append(("submitted", summary, None))

    def notify_approved(self, summary):
        self.calls.append(("approved", summary, None))

    def notify_rejected(self, summary, reason=""):
        self.calls.append(("rejected", summary, reason))

    def of_kind(self, kind):
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture
def store(tmp_path):
    return EntryStore(tmp_path / "entries.json")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def employee():
    return {
        "employeeId": "jdoe",
        "email": "jdoe@example.com",
        "displayName": "Jane Doe",
        "role": "developer",
    }


@pytest.fixture
def app(tmp_path, notifier, monkeypatch):
    monkeypatch.setattr(leave_service, "_server_today", lambda: TODAY)
    app = create_app(
        {
            "TESTING": True,
            "DATA_DIR": str(tmp_path),
            "NOTIFICATIONS_SYNC": True,
            "EMAIL_ENABLED": False,
        },
        notifier=notifier,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()
