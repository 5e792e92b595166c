from typing import Any

from celery import shared_task

from src.emails.services import email_send


@shared_task(
    name="emails.send_email",
    autoretry_for=(OSError,),
    retry_backoff=True,
    max_retries=3,
)
def send_email_task(payload: dict[str, Any]) -> bool:
    """
    payload:
      {"to": ["user@example.com"], "subject": "...", "html": "<p>..</p>", "text": "..."}
    """
    return email_send(**payload)
