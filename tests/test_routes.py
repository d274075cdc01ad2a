import json

from leave_tracker.errors import StoreIOError
from leave_tracker.storage import EntryStore


HEADERS = {"x-user-email": "jdoe@example.com"}


def _submit(client, dates, leave_type="Leave", note=""):
    return client.post(
        "/api/entry/batch",
        json={"type": leave_type, "note": note, "dates": dates},
        headers=HEADERS,
    )


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_user_reflects_sso_header(client):
    response = client.get("/api/user", headers=HEADERS)
    assert response.get_json()["employeeId"] == "jdoe"
    assert response.headers["Cache-Control"] == "no-store"


def test_anonymous_user(client):
    assert client.get("/api/user").get_json()["employeeId"] == "unknown"


def test_test_user_email_stands_in_for_sso(app):
    app.config["TEST_USER_EMAIL"] = "qa@example.com"
    assert app.test_client().get("/api/user").get_json()["email"] == "qa@example.com"


def test_leave_types(client):
    assert "Work From Oslo" in client.get("/api/leave-types").get_json()


def test_batch_submit(client, notifier):
    response = _submit(client, ["2026-05-14", "2026-05-16"], note="Trip")

    assert response.status_code == 200
    body = response.get_json()
    assert body["ok"] is True
    assert body["createdCount"] == 1
    assert body["skipped"] == [{"date": "2026-05-16", "reason": "weekend"}]
    assert body["created"][0]["status"] == "pending"
    assert body["token"] and body["groupId"]
    assert body["emailStatus"] == {"queued": True}
    assert [call[0] for call in notifier.calls] == ["submitted"]


def test_batch_requires_identity(client):
    response = client.post("/api/entry/batch", json={"type": "Leave", "dates": ["2026-05-14"]})
    assert response.status_code == 401


def test_batch_validation(client):
    assert _submit(client, ["2026-05-14"], leave_type="").status_code == 400
    response = _submit(client, [])
    assert response.status_code == 400
    assert response.get_json()["error"] == "No dates provided"


def test_batch_with_nothing_admitted(client, app):
    response = _submit(client, ["2026-05-16", "2026-05-17"])

    assert response.status_code == 409
    body = response.get_json()
    assert body["ok"] is False
    assert body["created"] == []
    assert len(body["skipped"]) == 2
    assert not EntryStore(app.config["ENTRIES_FILE"]).path.exists()


def test_entries_listing(client):
    _submit(client, ["2026-05-14", "2026-05-15"])

    entries = client.get("/api/entries").get_json()
    assert sorted(e["date"] for e in entries) == ["2026-05-14", "2026-05-15"]
    assert client.get("/api/entries?status=approved").get_json() == []
    assert len(client.get("/api/entries?employeeId=jdoe").get_json()) == 2


def test_approve_link_flow(client, notifier):
    token = _submit(client, ["2026-05-14"]).get_json()["token"]

    first = client.get(f"/api/leave/approve?token={token}", headers={"x-user-email": "boss@example.com"})
    second = client.get(f"/api/leave/approve?token={token}")
    refused = client.get(f"/api/leave/reject?token={token}")

    assert first.status_code == 200
    assert "Leave Request Approved!" in first.get_data(as_text=True)
    assert "Already Approved" in second.get_data(as_text=True)
    assert "Cannot Reject - Already Approved" in refused.get_data(as_text=True)
    assert len([c for c in notifier.calls if c[0] == "approved"]) == 1

    [entry] = client.get("/api/entries").get_json()
    assert entry["approvedBy"] == "boss@example.com"


def test_reject_link_with_reason(client, notifier):
    token = _submit(client, ["2026-05-14"]).get_json()["token"]

    response = client.get("/api/leave/reject", query_string={"token": token, "reason": "Release <week>"})

    page = response.get_data(as_text=True)
    assert "Leave Request Rejected" in page
    assert "Release &lt;week&gt;" in page
    assert notifier.calls[-1] == ("rejected", notifier.calls[-1][1], "Release <week>")
    assert "Already Rejected" in client.get(f"/api/leave/reject?token={token}").get_data(as_text=True)


def test_links_with_bad_tokens(client):
    assert client.get("/api/leave/approve").status_code == 400
    response = client.get("/api/leave/approve?token=unknown")
    assert response.status_code == 404
    assert "Entry Not Found" in response.get_data(as_text=True)


def test_json_decision_endpoint(client):
    token = _submit(client, ["2026-05-14"]).get_json()["token"]

    approved = client.post("/api/leave/decision", json={"token": token, "decision": "approve"})
    replay = client.post("/api/leave/decision", json={"token": token, "decision": "approve"})
    refused = client.post("/api/leave/decision", json={"token": token, "decision": "reject"})
    missing = client.post("/api/leave/decision", json={"token": "nope", "decision": "approve"})
    invalid = client.post("/api/leave/decision", json={"token": token, "decision": "maybe"})

    assert approved.status_code == 200
    assert approved.get_json()["outcome"] == "approved"
    assert approved.get_json()["dates"] == ["2026-05-14"]
    assert replay.get_json()["outcome"] == "already_processed"
    assert replay.get_json()["processedAt"] == approved.get_json()["processedAt"]
    assert refused.status_code == 409
    assert refused.get_json()["outcome"] == "cannot_reject_approved"
    assert missing.status_code == 404
    assert invalid.status_code == 400


def test_store_failure_is_reported(client, monkeypatch):
    def broken_save(self, entries):
        raise StoreIOError("disk full")

    monkeypatch.setattr(EntryStore, "save_all", broken_save)

    response = _submit(client, ["2026-05-14"])
    assert response.status_code == 500
    assert response.get_json()["ok"] is False


def test_clear_entries_command(app, client):
    _submit(client, ["2026-05-14"])
    store = app.extensions["leave_tracker"]["store"]

    result = app.test_cli_runner().invoke(args=["clear-entries"])

    assert result.exit_code == 0
    assert "All entries cleared." in result.output
    assert store.load_all() == []
    backups = list(store.path.parent.glob("entries_backup_*.json"))
    assert len(backups) == 1
    assert len(json.loads(backups[0].read_text(encoding="utf-8"))) == 1


def test_clear_entries_without_file(app):
    result = app.test_cli_runner().invoke(args=["clear-entries", "--no-backup"])
    assert result.exit_code == 0
    assert "nothing to clear" in result.output
