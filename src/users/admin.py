from django.contrib import admin

from src.users.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    ordering = ("email",)
    list_display = ("email", "name", "institution", "role", "algorithm", "is_active", "email_verified_at")
    list_filter = ("role", "algorithm", "is_active")
    search_fields = ("email", "name", "institution")
    readonly_fields = ("public_key", "key_updated_at", "email_verified_at", "created_at", "updated_at", "last_login")
    exclude = ("password", "email_verification_token")
