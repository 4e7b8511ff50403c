#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Email service — send change notifications via SMTP (aiosmtplib).

If SMTP_HOST is not configured, emails are printed to stdout (dev mode).
If NOTIFY_ADDRESS is not configured, change notifications are not sent.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from email.mime.text import MIMEText

from wicked.core.config import get_settings

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

async def send_email(to: str, subject: str, body_text: str) -> None:
    """Send a plain-text email.  Falls back to stdout when SMTP is not configured."""
    settings = get_settings()

    if not settings.smtp_host:
        log.warning("SMTP not configured — printing email to stdout")
        print(f"\n{'='*60}")
        print(f"TO:      {to}")
        print(f"SUBJECT: {subject}")
        print(f"{'='*60}")
        print(body_text)
        print(f"{'='*60}\n")
        return

    msg = MIMEText(body_text, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"]    = settings.smtp_from
    msg["To"]      = to

    import aiosmtplib

    await aiosmtplib.send(
        msg,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user or None,
        password=settings.smtp_password or None,
        use_tls=settings.smtp_ssl,
        start_tls=settings.smtp_tls,
    )


# -----------------------------------------------------------------------------

async def send_wiki_mail(body: str, subject: str) -> None:
    """Notify the configured address of a page change.

    *subject* is prefixed with ``[<app name>] ``.
    """
    settings = get_settings()
    if not settings.notify_address:
        log.debug("no notify_address configured; skipping %r", subject)
        return
    await send_email(settings.notify_address, f"[{settings.app_name}] {subject}", body)


# -----------------------------------------------------------------------------
