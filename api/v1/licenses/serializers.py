"""
Serializers for the public license verification endpoints.
"""

from rest_framework import serializers


class VerifyLicenseRequestSerializer(serializers.Serializer):
    """Serializer for verify license request."""

    license = serializers.CharField(required=True, allow_blank=False, trim_whitespace=True)


class LicenseStatusQuerySerializer(serializers.Serializer):
    """Serializer for the status query string."""

    licenseId = serializers.IntegerField(required=True, min_value=1)


class VerifiedLicenseSerializer(serializers.Serializer):
    """License display fields returned for a valid token."""

    id = serializers.IntegerField()
    clinicId = serializers.IntegerField()
    clinicName = serializers.CharField()
    clinicDomain = serializers.CharField()
    type = serializers.ChoiceField(choices=["Standalone", "Subscription"])
    version = serializers.CharField()
    activationDate = serializers.DateTimeField()
    firstActivated = serializers.DateTimeField(allow_null=True)
    supportExpiry = serializers.DateTimeField()


class VerifyLicenseResponseSerializer(serializers.Serializer):
    """Serializer for verify license response."""

    valid = serializers.BooleanField()
    firstActivation = serializers.BooleanField(required=False)
    license = VerifiedLicenseSerializer(required=False)
    reason = serializers.CharField(required=False)
    expired = serializers.BooleanField(required=False)


class LicenseStatusResponseSerializer(serializers.Serializer):
    """Serializer for license status response."""

    licenseId = serializers.IntegerField()
    status = serializers.ChoiceField(choices=["Active", "Expired", "Revoked"])
    lastVerified = serializers.DateTimeField(allow_null=True)
