"""
Outbound mail transport (SMTP).
Never raises: callers get {"success": bool, ...} back.
"""
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Dict

import structlog

from ..config import settings


log = structlog.get_logger()


def _deliver(msg: EmailMessage) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as s:
        if settings.smtp_tls:
            s.starttls()
        if settings.smtp_username and settings.smtp_password:
            s.login(settings.smtp_username, settings.smtp_password)
        s.send_message(msg)


def send_email(to: str, subject: str, html: str) -> Dict[str, Any]:
    if not settings.enable_email:
        return {"success": False, "error": "email disabled"}
    if not settings.smtp_host:
        return {"success": False, "error": "SMTP not configured"}
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg["Message-ID"] = make_msgid(domain=settings.mail_from.split("@")[-1] or None)
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")
    try:
        _deliver(msg)
    except (smtplib.SMTPException, OSError) as e:
        log.warning("email_send_failed", to=to, subject=subject, error=str(e))
        return {"success": False, "error": str(e)}
    log.info("email_sent", to=to, subject=subject, message_id=msg["Message-ID"])
    return {"success": True, "message_id": msg["Message-ID"]}
