"""
Django admin configuration for licenses app.
"""
import json

from django.contrib import admin
from django.utils.html import format_html

from licenses.infrastructure.models import AuditLog, License


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "id",
        "clinic",
        "type",
        "version",
        "status_display",
        "first_activated",
        "support_expiry",
        "last_verified",
    ]
    list_filter = ["status", "type", "support_expiry", "created_at"]
    search_fields = ["clinic__name", "clinic__domain"]
    # Lifecycle changes go through the admin API so they are signed and audited.
    readonly_fields = [
        "id",
        "key",
        "clinic",
        "activation_date",
        "first_activated",
        "support_expiry",
        "status",
        "last_verified",
        "created_at",
        "updated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "clinic", "type", "version", "status"),
            },
        ),
        (
            "Lifecycle",
            {
                "fields": (
                    "activation_date",
                    "first_activated",
                    "support_expiry",
                    "last_verified",
                ),
            },
        ),
        (
            "Token",
            {
                "fields": ("key",),
                "classes": ("collapse",),
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

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            "Active": "green",
            "Expired": "gray",
            "Revoked": "red",
        }
        if obj.is_pending_issuance:
            return format_html('<span style="color: orange;">PENDING</span>')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, "black"),
            obj.status.upper(),
        )

    status_display.short_description = "Status"

    def has_add_permission(self, request):
        """Licenses are issued through the admin API."""
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("clinic")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Admin interface for AuditLog model."""

    list_display = ["action", "license_id", "clinic_id", "actor", "created_at"]
    list_filter = ["action", "actor", "created_at"]
    search_fields = ["license_id", "clinic_id"]
    readonly_fields = ["id", "created_at", "details_display"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license_id", "clinic_id", "action"),
            },
        ),
        (
            "Details",
            {
                "fields": ("actor", "details_display", "created_at"),
            },
        ),
    )

    def details_display(self, obj):
        """Display details in a formatted way."""
        if obj.details:
            return format_html(
                '<pre style="background: #f5f5f5; padding: 10px; '
                'border-radius: 4px; overflow-x: auto;">{}</pre>',
                json.dumps(obj.details, indent=2),
            )
        return "-"

    details_display.short_description = "Details"

    def has_add_permission(self, request):
        """Audit logs are read-only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Audit logs are read-only."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Audit logs should not be deleted."""
        return False
