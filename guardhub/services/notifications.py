"""
Notification dispatcher.
Builds a templated message for an event and hands it to the mail transport.
Fire-and-forget: failures are logged and reported, never raised.
"""
import json
from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, Optional, Tuple

import pytz
import structlog

from ..config import settings
from . import mailer


log = structlog.get_logger()

INCIDENT_CREATED = "incident_created"
USER_REGISTERED = "user_registered"
PATROL_REPORT_SUBMITTED = "patrol_report_submitted"


def _fmt_time(value: Any, timezone_str: Optional[str] = None) -> str:
    """Render a timestamp in the company's local timezone."""
    if value is None:
        value = datetime.now(timezone.utc)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return escape(value)
    if not isinstance(value, datetime):
        return escape(str(value))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        tz = pytz.timezone(timezone_str or settings.tz_default)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M %Z")


def _field(label: str, value: Any) -> str:
    return f"<p><strong>{escape(label)}:</strong> {value}</p>"


def _text(payload: Dict[str, Any], key: str, default: str = "") -> str:
    value = payload.get(key)
    return escape(str(value)) if value not in (None, "") else escape(default)


def build_message(event_type: str, payload: Dict[str, Any]) -> Tuple[str, str]:
    """Return (subject, html) for an event; unknown events get a generic dump."""
    if event_type == INCIDENT_CREATED:
        subject = "New Incident Reported"
        html = "".join([
            "<h2>New Incident Reported</h2>",
            _field("Type", _text(payload, "incident_type")),
            _field("Location", _text(payload, "location", "Unknown")),
            _field("Description", _text(payload, "description")),
            _field("Severity", _text(payload, "severity", "medium").capitalize()),
            _field("Reported by", _text(payload, "reported_by", "Unknown")),
            _field("Time", _fmt_time(payload.get("occurred_at"))),
        ])
    elif event_type == USER_REGISTERED:
        subject = "New User Registered"
        html = "".join([
            "<h2>New User Registered</h2>",
            _field("Username", _text(payload, "username")),
            _field("Email", _text(payload, "email")),
            _field("Role", _text(payload, "role")),
            _field("Time", _fmt_time(payload.get("created_at"))),
        ])
    elif event_type == PATROL_REPORT_SUBMITTED:
        subject = "Patrol Report Submitted"
        html = "".join([
            "<h2>Patrol Report Submitted</h2>",
            _field("Officer", _text(payload, "officer", "Unknown")),
            _field("Property", _text(payload, "property", "Unassigned")),
            _field("Checkpoints", escape(str(len(payload.get("checkpoints") or [])))),
            _field("Summary", _text(payload, "summary")),
            _field("Started", _fmt_time(payload.get("start_time"))),
        ])
    else:
        subject = f"{settings.app_name} Notification"
        dump = json.dumps(payload, default=str, sort_keys=True)
        html = f"<p>{escape(event_type)}: {escape(dump)}</p>"
    return subject, html


def notify(event_type: str, payload: Dict[str, Any], to: Optional[str] = None) -> Dict[str, Any]:
    """
    Send a notification email for an event.

    Args:
        event_type: incident_created|user_registered|patrol_report_submitted|<other>
        payload: Event data used by the template
        to: Recipient (defaults to ADMIN_EMAIL)

    Returns:
        {"success": True, "message_id": ...} or {"success": False, "error": ...}
    """
    recipient = to or settings.admin_email
    try:
        subject, html = build_message(event_type, payload)
        result = mailer.send_email(recipient, subject, html)
    except Exception as e:  # background task: nothing upstream to propagate to
        log.warning("notification_failed", event_type=event_type, error=str(e))
        return {"success": False, "error": str(e)}
    if result.get("success"):
        log.info("notification_sent", event_type=event_type, message_id=result.get("message_id"))
    else:
        log.warning("notification_not_delivered", event_type=event_type, error=result.get("error"))
    return result
