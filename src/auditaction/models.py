from django.db import models
from src.common.models import BaseModel


class AuditCategory(models.TextChoices):
    AUTH = "AUTH", "Authentication"
    USER = "USER", "User"
    DOCUMENT = "DOCUMENT", "Document"
    SYSTEM = "SYSTEM", "System"


class Severity(models.TextChoices):
    INFO = "INFO", "Info"
    WARNING = "WARNING", "Warning"
    ERROR = "ERROR", "Error"
    CRITICAL = "CRITICAL", "Critical"


class AuditAction(models.TextChoices):
    AUTH_LOGIN_SUCCESS = "AUTH_LOGIN_SUCCESS", "Login success"
    AUTH_LOGIN_FAILED = "AUTH_LOGIN_FAILED", "Login failed"

    # Users
    USER_REGISTERED = "USER_REGISTERED", "User registered"
    USER_EMAIL_VERIFIED = "USER_EMAIL_VERIFIED", "Email verified"
    USER_VERIFICATION_SENT = "USER_VERIFICATION_SENT", "Verification email sent"
    USER_KEYS_UPDATED = "USER_KEYS_UPDATED", "Public key updated"
    USER_ALGORITHM_CHANGED = "USER_ALGORITHM_CHANGED", "Signing algorithm changed"

    # Documents
    DOCUMENT_SIGNED = "DOCUMENT_SIGNED", "Document signed"
    DOCUMENT_SIGN_REJECTED = "DOCUMENT_SIGN_REJECTED", "Signature rejected"
    DOCUMENT_REVOKED = "DOCUMENT_REVOKED", "Certificate revoked"
    DOCUMENT_DOWNLOADED = "DOCUMENT_DOWNLOADED", "Signed copy downloaded"

    SYSTEM_INTERNAL_FAULT = "SYSTEM_INTERNAL_FAULT", "Internal fault"


class AuditLog(BaseModel):
    """
    Audit trail for security relevant actions.
    """

    user = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_actions",
    )
    category = models.CharField(
        max_length=32, choices=AuditCategory.choices, default=AuditCategory.SYSTEM
    )
    action = models.CharField(max_length=50, choices=AuditAction.choices, db_index=True)

    target_type = models.CharField(max_length=50, blank=True, null=True)
    target_id = models.CharField(max_length=255, blank=True, null=True)

    details = models.JSONField(default=dict, blank=True)
    severity = models.CharField(
        max_length=16, choices=Severity.choices, default=Severity.INFO
    )

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    request_id = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category", "-created_at"], name="audit_category_idx"),
            models.Index(fields=["target_type", "target_id"], name="audit_target_idx"),
        ]

    def __str__(self) -> str:
        actor = self.user.email if self.user else "system"
        target = f"{self.target_type}:{self.target_id}" if self.target_type else ""
        return f"[{self.category}] {self.action} by {actor} {target} at {self.created_at:%Y-%m-%d %H:%M:%S}"
