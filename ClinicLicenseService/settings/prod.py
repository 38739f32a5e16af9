"""
Production settings for ClinicLicenseService.
"""

import os

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = False

# Security settings
SECURE_SSL_REDIRECT = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# Secret key and admin API key must come from the environment
SECRET_KEY = os.environ["SECRET_KEY"]
LICENSE_ADMIN_API_KEY = os.environ["LICENSE_ADMIN_API_KEY"]

# Logging in production
LOGGING = get_logging_config("production")
LOGGING["handlers"]["file"] = {
    "class": "logging.handlers.RotatingFileHandler",
    "filename": os.environ.get("LOG_FILE", "/var/log/clinic-license-service/app.log"),
    "maxBytes": 1024 * 1024 * 10,  # 10 MB
    "backupCount": 10,
    "formatter": "json",
}
LOGGING["root"]["handlers"].append("file")
