"""
Development settings for ClinicLicenseService.
"""

import os

from .base import *  # noqa: F403, F401

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Database - PostgreSQL by default, DB_ENGINE=sqlite for a local file database
if os.environ.get("DB_ENGINE") == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

# Fixed admin key for local development only
LICENSE_ADMIN_API_KEY = os.environ.get("LICENSE_ADMIN_API_KEY", "dev-admin-key")

# Email backend for development
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
