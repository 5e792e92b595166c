from django.contrib.auth.signals import user_logged_in, user_login_failed
from django.dispatch import receiver

from src.auditaction.models import AuditAction, Severity
from src.auditaction.services import audit_action_create


# Admin logins, token logins and failed token requests
@receiver(user_logged_in)
def record_login(sender, request, user, **kwargs):
    audit_action_create(
        user=user,
        action=AuditAction.AUTH_LOGIN_SUCCESS,
        details={"path": getattr(request, "path", "")},
        request=request,
    )


@receiver(user_login_failed)
def record_login_failure(sender, credentials, request=None, **kwargs):
    email = (credentials.get("email") or credentials.get("username") or "").strip().lower()
    audit_action_create(
        user=None,
        action=AuditAction.AUTH_LOGIN_FAILED,
        details={"email": email or None, "path": getattr(request, "path", "")},
        severity=Severity.WARNING,
        request=request,
    )
