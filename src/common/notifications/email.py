from typing import Any, Iterable

from django.template.loader import render_to_string
from django.utils.html import strip_tags

from src.emails.tasks import send_email_task

DEFAULT_LAYOUT = "email_default_layout.html"


def render_with_layout(inner_template: str | None, context: dict[str, Any]) -> str:
    """
    Envelope email in the layout by default. If 'inner_template' is provided,
    render it first then inject it into the layout via {{ content|safe }}.
    """
    if inner_template:
        content_html = render_to_string(inner_template, context)
        outer_ctx = dict(context)
        outer_ctx["content"] = content_html
        return render_to_string(DEFAULT_LAYOUT, outer_ctx)

    return render_to_string(DEFAULT_LAYOUT, context)


def queue_html_email(
    to: Iterable[str],
    subject: str,
    html: str,
    text_fallback: str | None = None,
) -> None:
    """Hand the message to the celery worker; runs inline when CELERY_TASK_ALWAYS_EAGER is set."""
    send_email_task.delay(
        {
            "to": list(to),
            "subject": subject,
            "html": html,
            "text": text_fallback or strip_tags(html),
        }
    )
