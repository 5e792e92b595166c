import tempfile

from .base import *  # noqa

DEBUG = False
SECRET_KEY = "notario-test-secret-key-with-enough-length-for-hs256"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

MEDIA_ROOT = tempfile.mkdtemp(prefix="notario-media-")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

NOTARIO_VERIFY_BASE_URL = "https://notario.test"
NOTARIO_SIGNATURE_DIAGNOSTICS_ENABLED = True
NINJA_JWT = {**NINJA_JWT, "SIGNING_KEY": SECRET_KEY}  # noqa: F405
