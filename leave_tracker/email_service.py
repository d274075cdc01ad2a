"""Email notifications for leave requests, sent via SMTP.

Submission mails go to the employee, the approver and the employee's manager
with Approve/Reject links and an iCalendar attachment. Decision mails go to
the employee only.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import smtplib
from email.message import EmailMessage
from email.utils import parseaddr
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlencode

from jinja2 import Environment, PackageLoader, select_autoescape


logger = logging.getLogger(__name__)

_templates = Environment(
    loader=PackageLoader("leave_tracker", "templates/email"),
    autoescape=select_autoescape(["html"]),
)


def ics_escape(value: str) -> str:
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def generate_ics_content(
    summary: Mapping[str, Any],
    organizer: str,
    status: str = "TENTATIVE",
    now: Optional[dt.datetime] = None,
) -> str:
    """Create an all-day calendar event covering the group's date span.

    ``DTEND`` is exclusive, so it is the day after the last requested date.
    The UID is derived from the group so the approval mail updates the event
    created by the request mail.
    """
    start = dt.date.fromisoformat(summary["startDate"])
    end = dt.date.fromisoformat(summary["endDate"]) + dt.timedelta(days=1)
    stamp = (now or dt.datetime.now(dt.timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    display_name = summary.get("displayName") or summary.get("employeeId")
    organizer_address = parseaddr(organizer)[1] or organizer

    description = f"{summary['type']} request for {display_name} ({summary['employeeId']})"
    if summary.get("note"):
        description += f"\n\nReason: {summary['note']}"

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Leave Tracker//Holiday Calendar//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:REQUEST",
        "BEGIN:VEVENT",
        f"UID:{summary.get('groupId') or summary['id']}@leave-tracker",
        f"DTSTAMP:{stamp}",
        f"DTSTART;VALUE=DATE:{start.strftime('%Y%m%d')}",
        f"DTEND;VALUE=DATE:{end.strftime('%Y%m%d')}",
        f"SUMMARY:{ics_escape(summary['type'])} - {ics_escape(display_name)}",
        f"DESCRIPTION:{ics_escape(description)}",
        "LOCATION:Out of Office",
        f"STATUS:{status}",
        "TRANSP:TRANSPARENT",
        f"ORGANIZER;CN=Holiday Calendar:MAILTO:{organizer_address}",
    ]
    if summary.get("email"):
        lines.append(
            f"ATTENDEE;CN={ics_escape(display_name)};ROLE=REQ-PARTICIPANT:MAILTO:{summary['email']}"
        )
    lines.extend(
        [
            "BEGIN:VALARM",
            "TRIGGER:-PT15M",
            "ACTION:DISPLAY",
            "DESCRIPTION:Reminder",
            "END:VALARM",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )
    return "\r\n".join(lines)


def _load_reporting(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Could not read reporting file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def approver_email(config: Mapping[str, Any]) -> str:
    reporting = _load_reporting(config["REPORTING_FILE"])
    approver = (reporting.get("reportingStructure") or {}).get("approver") or {}
    return str(approver.get("email") or config.get("APPROVER_EMAIL") or "").strip()


def manager_email(config: Mapping[str, Any], employee_id: str) -> str:
    reporting = _load_reporting(config["REPORTING_FILE"])
    for member in reporting.get("teamMembers") or []:
        if isinstance(member, dict) and member.get("id") == employee_id:
            return str(member.get("managerEmail") or "").strip()
    return ""


def resolve_recipients(config: Mapping[str, Any], addresses: Iterable[str]) -> List[str]:
    """Drop blanks and repeats, then apply the test-mode redirect."""
    recipients: List[str] = []
    for address in addresses:
        address = (address or "").strip()
        if address and address.lower() not in {r.lower() for r in recipients}:
            recipients.append(address)

    if config.get("EMAIL_TEST_MODE"):
        test_address = str(config.get("EMAIL_TEST_ADDRESS") or "").strip()
        logger.info("Email test mode: would notify %s", ", ".join(recipients))
        if test_address:
            recipients = [test_address]
        else:
            logger.warning("Email test mode without EMAIL_TEST_ADDRESS; sending to real recipients")
    return recipients


def decision_url(config: Mapping[str, Any], action: str, token: str) -> str:
    base = str(config["SERVER_URL"]).rstrip("/")
    return f"{base}/api/leave/{action}?{urlencode({'token': token})}"


def send_notification_email(
    config: Mapping[str, Any],
    recipients: List[str],
    subject: str,
    body: str,
    html_body: Optional[str] = None,
    ics_content: Optional[str] = None,
    ics_filename: str = "leave.ics",
) -> bool:
    """Deliver one message to ``recipients``.

    Returns ``False`` without contacting the relay when email is disabled or
    nobody is left to notify. SMTP errors propagate to the caller.
    """
    if not config.get("EMAIL_ENABLED", True):
        logger.info("Email disabled; not sending '%s'", subject)
        return False
    if not recipients:
        logger.warning("No recipients for '%s'; nothing sent", subject)
        return False

    msg = EmailMessage()
    msg["From"] = config["MAIL_FROM"]
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = subject
    msg.set_content(body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    if ics_content:
        msg.add_attachment(
            ics_content.encode("utf-8"),
            maintype="text",
            subtype="calendar",
            filename=ics_filename,
            params={"method": "REQUEST", "charset": "utf-8"},
        )

    logger.debug(
        "Sending email to %s with subject %s; ICS attached: %s",
        recipients,
        subject,
        bool(ics_content),
    )

    with smtplib.SMTP(config["SMTP_SERVER"], int(config["SMTP_PORT"]), timeout=config.get("SMTP_TIMEOUT", 20)) as smtp:
        if config.get("SMTP_STARTTLS"):
            smtp.starttls()
        if config.get("SMTP_USERNAME"):
            smtp.login(config["SMTP_USERNAME"], config.get("SMTP_PASSWORD", ""))
        smtp.send_message(msg, to_addrs=recipients)
    logger.info("Email '%s' sent to %s", subject, ", ".join(recipients))
    return True


class EmailNotifier:
    """Render and send the three leave notifications."""

    def __init__(self, config: Mapping[str, Any]) -> None:
        self.config = dict(config)

    def _render(self, name: str, **context: Any) -> str:
        return _templates.get_template(name).render(**context)

    def notify_submitted(self, summary: Dict[str, Any]) -> bool:
        approver = approver_email(self.config)
        manager = manager_email(self.config, summary["employeeId"])
        recipients = resolve_recipients(self.config, [summary["email"], approver, manager])

        context = {
            "summary": summary,
            "approve_url": decision_url(self.config, "approve", summary["token"]),
            "reject_url": decision_url(self.config, "reject", summary["token"]),
            "server_url": self.config["SERVER_URL"],
        }
        subject = (
            f"Leave Request: {summary['displayName']} - "
            f"{summary['startDate']} to {summary['endDate']}"
        )
        return send_notification_email(
            self.config,
            recipients,
            subject,
            self._render("request.txt", **context),
            html_body=self._render("request.html", **context),
            ics_content=generate_ics_content(summary, self.config["MAIL_FROM"]),
            ics_filename=f"leave-{summary['employeeId']}-{summary['startDate']}.ics",
        )

    def notify_approved(self, summary: Dict[str, Any]) -> bool:
        recipients = resolve_recipients(self.config, [summary["email"]])
        subject = f"Leave Request Approved - {summary['startDate']} to {summary['endDate']}"
        return send_notification_email(
            self.config,
            recipients,
            subject,
            self._render("approved.txt", summary=summary),
            html_body=self._render("approved.html", summary=summary),
            ics_content=generate_ics_content(summary, self.config["MAIL_FROM"], status="CONFIRMED"),
            ics_filename=f"approved-leave-{summary['startDate']}.ics",
        )

    def notify_rejected(self, summary: Dict[str, Any], reason: str = "") -> bool:
        recipients = resolve_recipients(self.config, [summary["email"]])
        subject = f"Leave Request Rejected - {summary['startDate']} to {summary['endDate']}"
        return send_notification_email(
            self.config,
            recipients,
            subject,
            self._render("rejected.txt", summary=summary, reason=reason),
            html_body=self._render("rejected.html", summary=summary, reason=reason),
        )


__all__ = [
    "EmailNotifier",
    "approver_email",
    "decision_url",
    "generate_ics_content",
    "manager_email",
    "resolve_recipients",
    "send_notification_email",
]
