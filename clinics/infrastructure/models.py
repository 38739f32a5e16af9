"""
Clinic model.
"""
from django.db import models


class Clinic(models.Model):
    """
    A dental clinic deployment that licenses are issued to.
    """

    LICENSE_TYPE_CHOICES = [
        ("Standalone", "Standalone"),
        ("Subscription", "Subscription"),
    ]

    STATUS_CHOICES = [
        ("Active", "Active"),
        ("Inactive", "Inactive"),
    ]

    name = models.CharField(max_length=255, help_text="Clinic display name")
    domain = models.CharField(max_length=255, blank=True, help_text="Clinic deployment domain")
    license_type = models.CharField(
        max_length=20,
        choices=LICENSE_TYPE_CHOICES,
        default="Standalone",
        help_text="Preferred license type",
    )
    admin_contact = models.CharField(max_length=255, blank=True)
    support_expiry = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="Active")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "clinics"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["domain"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return self.name
