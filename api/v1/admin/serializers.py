"""
Serializers for admin license management endpoints.
"""

from typing import Optional

from rest_framework import serializers

from core.domain.value_objects import LicenseType
from licenses.domain.license import utcnow

LICENSE_TYPE_CHOICES = [license_type.value for license_type in LicenseType]


class IssueLicenseRequestSerializer(serializers.Serializer):
    """Serializer for issue license request."""

    clinicId = serializers.IntegerField(required=True, min_value=1)
    type = serializers.ChoiceField(choices=LICENSE_TYPE_CHOICES, required=True)
    supportExpiry = serializers.DateTimeField(required=True)
    version = serializers.CharField(required=False, default="1.0", max_length=50)


class RenewLicenseRequestSerializer(serializers.Serializer):
    """
    Serializer for renew license request.

    Either an explicit supportExpiry, or a number of calendar months to
    extend the current expiry by (12 when neither is given).
    """

    supportExpiry = serializers.DateTimeField(required=False)
    months = serializers.IntegerField(required=False, min_value=1, max_value=120)

    def validate(self, attrs):
        """Reject requests giving both forms."""
        if "supportExpiry" in attrs and "months" in attrs:
            raise serializers.ValidationError("Provide either supportExpiry or months, not both")
        return attrs


class TransferLicenseRequestSerializer(serializers.Serializer):
    """Serializer for transfer license request."""

    clinicId = serializers.IntegerField(required=True, min_value=1)


class ClinicLicensesQuerySerializer(serializers.Serializer):
    """Serializer for the list query string."""

    clinicId = serializers.IntegerField(required=True, min_value=1)


class AdminLicenseSerializer(serializers.Serializer):
    """
    Serializer for a license record as seen by administrators.

    The key is the signed token; it is null while issuance is pending.
    Status is the effective status at serialization time.
    """

    id = serializers.IntegerField()
    clinicId = serializers.IntegerField(source="clinic_id")
    key = serializers.SerializerMethodField()
    type = serializers.CharField(source="type.value")
    version = serializers.CharField()
    status = serializers.SerializerMethodField()
    activationDate = serializers.DateTimeField(source="activation_date")
    firstActivated = serializers.DateTimeField(source="first_activated", allow_null=True)
    supportExpiry = serializers.DateTimeField(source="support_expiry")
    lastVerified = serializers.DateTimeField(source="last_verified", allow_null=True)
    pendingIssuance = serializers.BooleanField(source="is_pending_issuance")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    def get_key(self, obj) -> Optional[str]:
        return None if obj.is_pending_issuance else obj.key

    def get_status(self, obj) -> str:
        return obj.effective_status(utcnow()).value
