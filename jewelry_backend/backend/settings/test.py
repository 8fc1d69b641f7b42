# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite, no .env dependence
- Collaborator services replaced by in-process implementations
- Fast password hashing
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import INTEGRATIONS, LOGGING

DEBUG = False
SECRET_KEY = "test-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

INTEGRATIONS = {**INTEGRATIONS, "BACKEND": "local"}

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_CLASSES": (),
}

LOGGING = {**LOGGING, "root": {"handlers": ["console"], "level": "CRITICAL"}}
