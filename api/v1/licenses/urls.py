"""
URL configuration for public license API endpoints.
"""

from django.urls import path

from api.v1.licenses import views

urlpatterns = [
    path(
        "verify",
        views.VerifyLicenseView.as_view(),
        name="verify-license",
    ),
    path(
        "status",
        views.LicenseStatusView.as_view(),
        name="license-status",
    ),
]
