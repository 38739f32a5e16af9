"""
Model registry for the clinics app.
"""
from clinics.infrastructure.models import Clinic  # noqa: F401
