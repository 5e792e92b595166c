from django.contrib import admin, messages

from src.core.exceptions import APIError
from src.documents.models import SignatureRecord
from src.documents.services import document_revoke


@admin.register(SignatureRecord)
class SignatureRecordAdmin(admin.ModelAdmin):
    list_display = ("certificate_id", "file_name", "owner", "algorithm", "document_type", "issued_at", "revoked")
    list_filter = ("algorithm", "document_type", "revoked", "message_encoding")
    search_fields = ("certificate_id", "fingerprint", "signed_fingerprint", "file_name", "owner__email")
    date_hierarchy = "issued_at"
    readonly_fields = [f.name for f in SignatureRecord._meta.fields]
    actions = ["revoke_selected"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Revoke selected certificates")
    def revoke_selected(self, request, queryset):
        revoked = 0
        for record in queryset.filter(revoked=False):
            try:
                document_revoke(
                    certificate_id=record.certificate_id,
                    actor=request.user,
                    reason="Revoked from admin",
                    request=request,
                )
                revoked += 1
            except APIError as e:
                self.message_user(request, f"{record.certificate_id}: {e.message}", level=messages.ERROR)
        self.message_user(request, f"{revoked} certificate(s) revoked")
