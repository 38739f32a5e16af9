"""
ASGI config for ClinicLicenseService.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ClinicLicenseService.settings.dev")

application = get_asgi_application()
