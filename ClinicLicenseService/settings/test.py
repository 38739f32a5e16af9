"""
Test settings for ClinicLicenseService.
"""

import os
import tempfile
from pathlib import Path

from .base import *  # noqa: F403, F401

DEBUG = False

ALLOWED_HOSTS = ["testserver", "localhost"]

# Use PostgreSQL in CI (from DATABASE_URL), SQLite in-memory for local tests
DATABASE_URL = os.environ.get("DATABASE_URL")
if DATABASE_URL and DATABASE_URL.startswith("postgresql"):
    import urllib.parse

    parsed = urllib.parse.urlparse(DATABASE_URL)
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": parsed.path.lstrip("/"),
            "USER": parsed.username or "postgres",
            "PASSWORD": parsed.password or "",
            "HOST": parsed.hostname or "localhost",
            "PORT": parsed.port or 5432,
            "TEST": {
                "NAME": parsed.path.lstrip("/") + "_test",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

# Use in-memory cache for tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password hashers for faster tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Throwaway signing keys; tests that need keys build their own provider
LICENSE_SIGNING_KEY_DIR = Path(tempfile.mkdtemp(prefix="license-keys-"))

LICENSE_ADMIN_API_KEY = "test-admin-key"

LICENSE_VERIFY_RATE_LIMIT = 10000

# Disable logging during tests
LOGGING_CONFIG = None
