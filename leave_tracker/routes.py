"""HTTP and HTML routes for the leave tracker."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from flask import (
    Blueprint,
    current_app,
    jsonify,
    render_template,
    request,
)

from . import lifecycle
from .errors import LeaveError, StoreIOError, ValidationError
from .identity import current_user
from .leave_service import (
    DEFAULT_ACTOR,
    NOT_FOUND,
    DecisionResult,
    approve,
    list_entries,
    reject,
    submit_batch,
)


api_bp = Blueprint("leave_api", __name__)
ui_bp = Blueprint("ui", __name__, template_folder="templates")


GREEN = "#059669"
RED = "#dc2626"
AMBER = "#f59e0b"


def _store():
    return current_app.extensions["leave_tracker"]["store"]


def _notifier():
    return current_app.extensions["leave_tracker"]["notifier"]


def _actor() -> str:
    return current_user().get("email") or DEFAULT_ACTOR


@api_bp.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    return jsonify({"ok": False, "error": str(exc)}), 400


@api_bp.errorhandler(StoreIOError)
def handle_store_error(exc: StoreIOError):
    return jsonify({"ok": False, "error": "Leave entries are temporarily unavailable"}), 500


@api_bp.errorhandler(LeaveError)
def handle_leave_error(exc: LeaveError):
    return jsonify({"ok": False, "error": str(exc)}), 400


@api_bp.route("/health", methods=["GET"])
def health_check():
    return jsonify({"status": "ok"})


@api_bp.route("/api/user", methods=["GET"])
def user():
    response = jsonify(current_user())
    response.headers["Cache-Control"] = "no-store"
    return response


@api_bp.route("/api/leave-types", methods=["GET"])
def leave_types():
    return jsonify(list(current_app.config["LEAVE_TYPES"]))


@api_bp.route("/api/entries", methods=["GET"])
def entries():
    employee_id = request.args.get("employeeId")
    status = request.args.get("status")
    return jsonify(list_entries(_store(), employee_id=employee_id, status=status))


@api_bp.route("/api/entry/batch", methods=["POST"])
def submit_entries():
    identity = current_user()
    if not identity.get("email"):
        return (
            jsonify({"ok": False, "message": "Not authenticated. No SSO identity reached the server."}),
            401,
        )

    payload = request.get_json(silent=True) or {}
    result = submit_batch(
        _store(),
        _notifier(),
        identity,
        leave_type=payload.get("type"),
        note=payload.get("note"),
        dates=payload.get("dates"),
    )
    body = result.to_dict()
    if not result.ok:
        return jsonify(body), 409
    body["emailStatus"] = {"queued": True}
    return jsonify(body)


_DECISION_STATUS = {
    NOT_FOUND: 404,
    lifecycle.OUTCOME_CANNOT_REJECT_APPROVED: 409,
}


@api_bp.route("/api/leave/decision", methods=["POST"])
def leave_decision():
    payload = request.get_json(silent=True) or {}
    token = str(payload.get("token") or "").strip()
    decision = str(payload.get("decision") or "").strip().lower()

    if not token:
        raise ValidationError("'token' is required")
    if decision == lifecycle.APPROVE:
        result = approve(_store(), _notifier(), token, actor=_actor())
    elif decision == lifecycle.REJECT:
        result = reject(_store(), _notifier(), token, actor=_actor(), reason=str(payload.get("reason") or ""))
    else:
        raise ValidationError("'decision' must be 'approve' or 'reject'")

    return jsonify(result.to_dict()), _DECISION_STATUS.get(result.outcome, 200)


def _status_page(result: DecisionResult) -> Tuple[str, int]:
    context: Dict[str, Any] = {"result": result, "badge": None, "message": None}
    status = result.status

    if result.outcome == NOT_FOUND:
        context.update(
            title="Entry Not Found",
            color=RED,
            message="This leave request does not exist or has been deleted.",
        )
        return render_template("status.html", **context), 404
    if result.outcome == lifecycle.OUTCOME_APPROVED:
        context.update(
            title="Leave Request Approved!",
            color=GREEN,
            badge="APPROVED",
            message="The employee has been notified via email.",
        )
    elif result.outcome == lifecycle.OUTCOME_REJECTED:
        context.update(
            title="Leave Request Rejected",
            color=RED,
            badge="REJECTED",
            message="The employee has been notified via email.",
        )
    elif result.outcome == lifecycle.OUTCOME_CANNOT_REJECT_APPROVED:
        context.update(
            title="Cannot Reject - Already Approved",
            color=AMBER,
            message=f"This request was already approved on {result.processed_at} and cannot be rejected.",
        )
    else:
        color = GREEN if status == lifecycle.APPROVED else RED
        context.update(
            title=f"Already {status.capitalize()}",
            color=color,
            badge=status.upper(),
            message=f"This request was already {status} on {result.processed_at}.",
        )
    return render_template("status.html", **context), 200


@ui_bp.route("/api/leave/approve", methods=["GET"])
def approve_link():
    token = (request.args.get("token") or "").strip()
    if not token:
        return "Missing token", 400
    return _status_page(approve(_store(), _notifier(), token, actor=_actor()))


@ui_bp.route("/api/leave/reject", methods=["GET"])
def reject_link():
    token = (request.args.get("token") or "").strip()
    if not token:
        return "Missing token", 400
    reason = (request.args.get("reason") or "").strip()
    return _status_page(reject(_store(), _notifier(), token, actor=_actor(), reason=reason))


__all__ = ["api_bp", "ui_bp"]
