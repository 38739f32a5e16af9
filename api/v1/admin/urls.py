"""
URL configuration for admin license API endpoints.
"""

from django.urls import path

from api.v1.admin import views

urlpatterns = [
    path(
        "licenses",
        views.LicenseCollectionView.as_view(),
        name="admin-licenses",
    ),
    path(
        "licenses/<int:license_id>",
        views.LicenseDetailView.as_view(),
        name="admin-license-detail",
    ),
    path(
        "licenses/<int:license_id>/renew",
        views.RenewLicenseView.as_view(),
        name="admin-license-renew",
    ),
    path(
        "licenses/<int:license_id>/revoke",
        views.RevokeLicenseView.as_view(),
        name="admin-license-revoke",
    ),
    path(
        "licenses/<int:license_id>/transfer",
        views.TransferLicenseView.as_view(),
        name="admin-license-transfer",
    ),
]
