"""
Model registry for the licenses app.
"""
from licenses.infrastructure.models import AuditLog, License  # noqa: F401
