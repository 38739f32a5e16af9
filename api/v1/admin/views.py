"""
Admin license API views.

These endpoints are used by the clinic admin system to:
- Issue licenses
- List and inspect licenses
- Renew, revoke and transfer licenses

Authentication is enforced by AdminAPIKeyMiddleware.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.exceptions import APIError
from api.v1.admin.serializers import (
    AdminLicenseSerializer,
    ClinicLicensesQuerySerializer,
    IssueLicenseRequestSerializer,
    RenewLicenseRequestSerializer,
    TransferLicenseRequestSerializer,
)
from core.domain.value_objects import LicenseType
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.apps import get_lifecycle_service

tracer = get_tracer(__name__)

API_KEY_PARAMETER = OpenApiParameter(
    name="X-API-Key",
    type=str,
    location=OpenApiParameter.HEADER,
    required=True,
    description="Admin API key",
)

LICENSE_ERROR_RESPONSES = {
    400: {"description": "Bad Request"},
    401: {"description": "Missing or invalid API key"},
    404: {"description": "License or clinic not found"},
    409: {"description": "Operation not allowed in the license's current state"},
}


def _validation_error(serializer) -> Response:
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": serializer.errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )


class LicenseCollectionView(APIView):
    """View for issuing and listing licenses."""

    @extend_schema(
        operation_id="issue_license",
        summary="Issue License",
        description=(
            "Issue a license to a clinic. The record and its signed token are "
            "created together; the token embeds the new license id."
        ),
        tags=["Admin API"],
        parameters=[API_KEY_PARAMETER],
        request=IssueLicenseRequestSerializer,
        responses={201: AdminLicenseSerializer, **LICENSE_ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Issue a license."""
        return async_to_sync(self._handle_issue)(request)

    async def _handle_issue(self, request: Request) -> Response:
        """Async handler for issue license."""
        with tracer.start_as_current_span("issue_license") as span:
            serializer = IssueLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return _validation_error(serializer)

            data = serializer.validated_data
            span.set_attribute("clinic.id", data["clinicId"])
            span.set_attribute("license.type", data["type"])

            license = await get_lifecycle_service().issue(
                clinic_id=data["clinicId"],
                license_type=LicenseType(data["type"]),
                support_expiry=data["supportExpiry"],
                version=data["version"],
            )

            span.set_attribute("license.id", license.id)
            span.set_status(Status(StatusCode.OK))
            return Response(AdminLicenseSerializer(license).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="list_clinic_licenses",
        summary="List Clinic Licenses",
        tags=["Admin API"],
        parameters=[
            API_KEY_PARAMETER,
            OpenApiParameter(
                name="clinicId",
                type=int,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Clinic ID",
            ),
        ],
        responses={200: AdminLicenseSerializer(many=True), **LICENSE_ERROR_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        """List a clinic's licenses."""
        return async_to_sync(self._handle_list)(request)

    async def _handle_list(self, request: Request) -> Response:
        """Async handler for list licenses."""
        serializer = ClinicLicensesQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            raise APIError("clinicId query parameter must be a positive integer", code="invalid_clinic_id")

        licenses = await get_lifecycle_service().list_for_clinic(serializer.validated_data["clinicId"])
        return Response(
            {"results": AdminLicenseSerializer(licenses, many=True).data, "count": len(licenses)},
            status=status.HTTP_200_OK,
        )


class LicenseDetailView(APIView):
    """View for a single license record."""

    @extend_schema(
        operation_id="get_license",
        summary="Get License",
        tags=["Admin API"],
        parameters=[API_KEY_PARAMETER],
        responses={200: AdminLicenseSerializer, **LICENSE_ERROR_RESPONSES},
    )
    def get(self, request: Request, license_id: int) -> Response:
        """Get a license record."""
        license = async_to_sync(get_lifecycle_service().get_license)(license_id)
        return Response(AdminLicenseSerializer(license).data, status=status.HTTP_200_OK)


class RenewLicenseView(APIView):
    """View for renewing licenses."""

    @extend_schema(
        operation_id="renew_license",
        summary="Renew License",
        description=(
            "Extend a license's support window, either to an explicit "
            "supportExpiry or by a number of calendar months (default 12). "
            "Revoked licenses cannot be renewed. The token is not re-minted."
        ),
        tags=["Admin API"],
        parameters=[API_KEY_PARAMETER],
        request=RenewLicenseRequestSerializer,
        responses={200: AdminLicenseSerializer, **LICENSE_ERROR_RESPONSES},
    )
    def post(self, request: Request, license_id: int) -> Response:
        """Renew a license."""
        return async_to_sync(self._handle_renew)(request, license_id)

    async def _handle_renew(self, request: Request, license_id: int) -> Response:
        """Async handler for renew license."""
        with tracer.start_as_current_span("renew_license") as span:
            span.set_attribute("license.id", license_id)
            serializer = RenewLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return _validation_error(serializer)

            data = serializer.validated_data
            kwargs = {"support_expiry": data.get("supportExpiry")}
            if "months" in data:
                kwargs["months"] = data["months"]
            license = await get_lifecycle_service().renew(license_id, **kwargs)

            span.set_status(Status(StatusCode.OK))
            return Response(AdminLicenseSerializer(license).data, status=status.HTTP_200_OK)


class RevokeLicenseView(APIView):
    """View for revoking licenses."""

    @extend_schema(
        operation_id="revoke_license",
        summary="Revoke License",
        description="Revoke a license. Revoking a revoked license is a no-op.",
        tags=["Admin API"],
        parameters=[API_KEY_PARAMETER],
        request=None,
        responses={200: AdminLicenseSerializer, **LICENSE_ERROR_RESPONSES},
    )
    def post(self, request: Request, license_id: int) -> Response:
        """Revoke a license."""
        with tracer.start_as_current_span("revoke_license") as span:
            span.set_attribute("license.id", license_id)
            license = async_to_sync(get_lifecycle_service().revoke)(license_id)
            span.set_status(Status(StatusCode.OK))
            return Response(AdminLicenseSerializer(license).data, status=status.HTTP_200_OK)


class TransferLicenseView(APIView):
    """View for transferring licenses between clinics."""

    @extend_schema(
        operation_id="transfer_license",
        summary="Transfer License",
        description=(
            "Move a license to another clinic. A new token is minted for the "
            "destination clinic; tokens minted for the previous clinic are "
            "rejected as superseded."
        ),
        tags=["Admin API"],
        parameters=[API_KEY_PARAMETER],
        request=TransferLicenseRequestSerializer,
        responses={200: AdminLicenseSerializer, **LICENSE_ERROR_RESPONSES},
    )
    def post(self, request: Request, license_id: int) -> Response:
        """Transfer a license."""
        return async_to_sync(self._handle_transfer)(request, license_id)

    async def _handle_transfer(self, request: Request, license_id: int) -> Response:
        """Async handler for transfer license."""
        with tracer.start_as_current_span("transfer_license") as span:
            span.set_attribute("license.id", license_id)
            serializer = TransferLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return _validation_error(serializer)

            new_clinic_id = serializer.validated_data["clinicId"]
            span.set_attribute("clinic.id", new_clinic_id)
            license = await get_lifecycle_service().transfer(license_id, new_clinic_id)

            span.set_status(Status(StatusCode.OK))
            return Response(AdminLicenseSerializer(license).data, status=status.HTTP_200_OK)
