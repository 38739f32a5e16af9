"""
License and AuditLog models.
"""
from django.db import models

from licenses.domain.license import is_placeholder_key


class License(models.Model):
    """
    A signed, time-bounded license bound to one clinic.

    The key column holds the signed token once issuance has completed,
    and a "pending:" placeholder while it is in flight.
    """

    TYPE_CHOICES = [
        ("Standalone", "Standalone"),
        ("Subscription", "Subscription"),
    ]

    STATUS_CHOICES = [
        ("Active", "Active"),
        ("Expired", "Expired"),
        ("Revoked", "Revoked"),
    ]

    clinic = models.ForeignKey(
        "clinics.Clinic", on_delete=models.PROTECT, related_name="licenses"
    )
    key = models.TextField(unique=True, help_text="Signed license token")
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    version = models.CharField(max_length=50, default="1.0")
    activation_date = models.DateTimeField()
    first_activated = models.DateTimeField(null=True, blank=True)
    support_expiry = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="Active")
    last_verified = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["clinic", "status"]),
            models.Index(fields=["support_expiry"]),
        ]

    def __str__(self):
        return f"License {self.pk} ({self.type}) - clinic {self.clinic_id}"

    @property
    def is_pending_issuance(self) -> bool:
        return is_placeholder_key(self.key)


class AuditLog(models.Model):
    """
    Immutable audit trail of license lifecycle changes.
    """

    ACTION_CHOICES = [
        ("license_issued", "License Issued"),
        ("license_first_activated", "License First Activated"),
        ("license_renewed", "License Renewed"),
        ("license_revoked", "License Revoked"),
        ("license_transferred", "License Transferred"),
    ]

    license_id = models.BigIntegerField(db_index=True)
    clinic_id = models.BigIntegerField(null=True, blank=True)
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    details = models.JSONField(default=dict, help_text="Details of the change")
    actor = models.CharField(max_length=255, help_text="Who performed the action")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["license_id", "action"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return f"{self.action} - license {self.license_id}"
