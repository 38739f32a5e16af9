"""
Public license API views.

These endpoints are called by clinic deployments, including from the
browser, so every response is CORS-open:
- Verify a license token
- Check a license's status by id
"""

import logging

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.exceptions import ParseError
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.exceptions import APIError
from api.v1.licenses.serializers import (
    LicenseStatusQuerySerializer,
    LicenseStatusResponseSerializer,
    VerifyLicenseRequestSerializer,
    VerifyLicenseResponseSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import errors_total
from licenses.apps import get_lifecycle_service

logger = logging.getLogger(__name__)

tracer = get_tracer(__name__)

REASON_TOKEN_REQUIRED = "license token required"
REASON_VALIDATION_FAILED = "validation failed"


class CorsOpenMixin:
    """Adds permissive CORS headers to every response, including preflight."""

    cors_allow_methods = "GET, POST, PUT, OPTIONS"

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        response["Access-Control-Allow-Origin"] = "*"
        response["Access-Control-Allow-Methods"] = self.cors_allow_methods
        response["Access-Control-Allow-Headers"] = "Content-Type"
        return response


class VerifyLicenseView(CorsOpenMixin, APIView):
    """View for verifying license tokens."""

    cors_allow_methods = "POST, PUT, OPTIONS"

    @extend_schema(
        operation_id="verify_license",
        summary="Verify License Token",
        description=(
            "Verify a signed license token presented by a clinic deployment. "
            "A valid token records first activation and the verification time. "
            "Rejections carry a reason and never expose key material."
        ),
        tags=["License API"],
        request=VerifyLicenseRequestSerializer,
        responses={
            200: VerifyLicenseResponseSerializer,
            400: VerifyLicenseResponseSerializer,
            500: VerifyLicenseResponseSerializer,
        },
    )
    def put(self, request: Request) -> Response:
        """Verify a license token."""
        return async_to_sync(self._handle_verify)(request)

    @extend_schema(
        operation_id="verify_license_post",
        summary="Verify License Token (POST)",
        tags=["License API"],
        request=VerifyLicenseRequestSerializer,
        responses={
            200: VerifyLicenseResponseSerializer,
            400: VerifyLicenseResponseSerializer,
            500: VerifyLicenseResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Verify a license token."""
        return async_to_sync(self._handle_verify)(request)

    async def _handle_verify(self, request: Request) -> Response:
        """Async handler for verify license."""
        with tracer.start_as_current_span("verify_license") as span:
            span.set_attribute("operation", "verify_license")

            try:
                data = request.data
            except ParseError:
                data = {}
            serializer = VerifyLicenseRequestSerializer(data=data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Token missing"))
                return Response(
                    {"valid": False, "reason": REASON_TOKEN_REQUIRED},
                    status=status.HTTP_400_BAD_REQUEST,
                )

            try:
                result = await get_lifecycle_service().validate(
                    serializer.validated_data["license"]
                )
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("License validation failed: %s", e, exc_info=True)
                errors_total.labels(error_type=type(e).__name__, endpoint=request.path).inc()
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return Response(
                    {"valid": False, "reason": REASON_VALIDATION_FAILED},
                    status=status.HTTP_500_INTERNAL_SERVER_ERROR,
                )

            span.set_attribute("license.valid", result.valid)
            if result.valid:
                span.set_attribute("license.id", result.license.id)
                span.set_attribute("license.first_activation", result.first_activation)
                span.set_status(Status(StatusCode.OK))
                return Response(result.to_dict(), status=status.HTTP_200_OK)

            span.set_attribute("license.reason", result.reason)
            return Response(result.to_dict(), status=status.HTTP_400_BAD_REQUEST)


class LicenseStatusView(CorsOpenMixin, APIView):
    """View for checking a license's status."""

    cors_allow_methods = "GET, OPTIONS"

    @extend_schema(
        operation_id="get_license_status",
        summary="Check License Status",
        description=(
            "Return the effective status of a license (expiry is derived at call "
            "time) and when it was last verified. The check is recorded as a "
            "verification."
        ),
        tags=["License API"],
        parameters=[
            OpenApiParameter(
                name="licenseId",
                type=int,
                location=OpenApiParameter.QUERY,
                required=True,
                description="License ID",
            ),
        ],
        responses={
            200: LicenseStatusResponseSerializer,
            400: {"description": "Missing or invalid licenseId"},
            404: {"description": "License not found"},
        },
    )
    def get(self, request: Request) -> Response:
        """Check license status."""
        return async_to_sync(self._handle_get_status)(request)

    async def _handle_get_status(self, request: Request) -> Response:
        """Async handler for license status."""
        with tracer.start_as_current_span("get_license_status") as span:
            serializer = LicenseStatusQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Invalid licenseId"))
                raise APIError(
                    "licenseId query parameter must be a positive integer",
                    code="invalid_license_id",
                )

            license_id = serializer.validated_data["licenseId"]
            span.set_attribute("license.id", license_id)

            result = await get_lifecycle_service().check_status(license_id)

            span.set_attribute("license.status", result.status)
            span.set_status(Status(StatusCode.OK))
            return Response(result.to_dict(), status=status.HTTP_200_OK)
