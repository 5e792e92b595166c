from __future__ import annotations
import logging
from typing import Iterable

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


def email_send(
    *,
    to: Iterable[str],
    subject: str,
    html: str,
    text: str | None = None,
    cc: Iterable[str] | None = None,
    bcc: Iterable[str] | None = None,
    reply_to: Iterable[str] | None = None,
) -> bool:
    """Send one multipart (text + html) message. SMTP errors propagate to the caller."""
    message = EmailMultiAlternatives(
        subject=subject,
        body=text or strip_tags(html),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        to=list(to),
        cc=list(cc) if cc else None,
        bcc=list(bcc) if bcc else None,
        reply_to=list(reply_to) if reply_to else None,
    )
    message.attach_alternative(html, "text/html")
    sent = message.send()
    logger.info("email sent", extra={"subject": subject, "recipients": len(message.to)})
    return sent > 0
