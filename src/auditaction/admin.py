from django.contrib import admin
from src.auditaction.models import AuditLog


@admin.register(AuditLog)
class AuditActionAdmin(admin.ModelAdmin):
    list_display = ("created_at", "category", "action", "severity", "user", "target_type", "target_id", "ip_address")
    list_filter = ("category", "severity", "action")
    search_fields = ("action", "user__email", "target_id")
    readonly_fields = [f.name for f in AuditLog._meta.fields]
    ordering = ("-created_at",)
