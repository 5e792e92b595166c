from django.apps import AppConfig


class AuditactionConfig(AppConfig):
    name = "src.auditaction"
    label = "auditaction"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from . import signals  # noqa: F401
