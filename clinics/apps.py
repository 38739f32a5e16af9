from django.apps import AppConfig


class ClinicsConfig(AppConfig):
    """App configuration for clinics."""

    name = "clinics"
    verbose_name = "Clinics"
