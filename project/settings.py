import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-citiwatch-dev-key")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "rest_framework",
    "gateway",
    "accounts",
    "complaints",
    "categories",
    "statuses",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "project.urls"
WSGI_APPLICATION = "project.wsgi.application"

# The backend owns every record; the local database is never written.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_AGE = 24 * 60 * 60

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "citiwatch",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.MultiPartParser",
        "rest_framework.parsers.FormParser",
    ],
    "EXCEPTION_HANDLER": "gateway.handlers.envelope_exception_handler",
}

# CitiWatch backend
CITIWATCH_API_URL = os.getenv("CITIWATCH_API_URL", "http://localhost:5182/api")
CITIWATCH_API_TIMEOUT = float(os.getenv("CITIWATCH_API_TIMEOUT", "10"))
CITIWATCH_SECURE_TOKEN_STORAGE = env_bool("CITIWATCH_SECURE_TOKEN_STORAGE", not DEBUG)
CITIWATCH_TOKEN_MAX_AGE_MS = int(os.getenv("CITIWATCH_TOKEN_MAX_AGE_MS", str(24 * 60 * 60 * 1000)))
CITIWATCH_SESSION_EXPIRED_REDIRECT_DELAY = int(os.getenv("CITIWATCH_SESSION_EXPIRED_REDIRECT_DELAY", "2"))
CITIWATCH_USER_CACHE_DAYS = int(os.getenv("CITIWATCH_USER_CACHE_DAYS", "30"))
CITIWATCH_ADMIN_EMAIL = os.getenv("CITIWATCH_ADMIN_EMAIL", "")
CITIWATCH_ADMIN_PASSWORD = os.getenv("CITIWATCH_ADMIN_PASSWORD", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        app: {
            "handlers": ["console"],
            "level": os.getenv("CITIWATCH_LOG_LEVEL", "DEBUG" if DEBUG else "INFO"),
            "propagate": False,
        }
        for app in ("gateway", "accounts", "complaints", "categories", "statuses")
    },
}
