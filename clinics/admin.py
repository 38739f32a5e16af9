"""
Django admin configuration for clinics app.
"""

from django.contrib import admin

from clinics.infrastructure.models import Clinic


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    """Admin interface for Clinic model."""

    list_display = ["name", "domain", "license_type", "status", "license_count", "created_at"]
    list_filter = ["license_type", "status", "created_at"]
    search_fields = ["name", "domain", "admin_contact"]
    readonly_fields = ["id", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "name", "domain", "admin_contact"),
            },
        ),
        (
            "Licensing",
            {
                "fields": ("license_type", "support_expiry", "status"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def license_count(self, obj):
        """Display number of licenses issued to this clinic."""
        return obj.licenses.count()

    license_count.short_description = "Licenses"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).prefetch_related("licenses")
