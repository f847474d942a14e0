"""
Django settings for the DTEAA alumni membership portal.
Reads all secrets from environment variables; no .env file required in production.
"""

from pathlib import Path
import os
import dj_database_url

# ---------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

DEBUG = os.getenv("DEBUG", "False") == "True"
SECRET_KEY = os.getenv("SECRET_KEY", "change-this-in-prod")

ALLOWED_HOSTS = [
    host.strip() for host in os.getenv(
        "ALLOWED_HOSTS",
        "localhost,127.0.0.1,testserver,dteaa.org,www.dteaa.org"
    ).split(",")
    if host.strip()
]

# Reverse proxy headers
USE_X_FORWARDED_HOST = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# ---------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Static files helper for runserver (and needed by WhiteNoise)
    "whitenoise.runserver_nostatic",

    "membership",
]

# ---------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",  # keep directly after SecurityMiddleware
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "dteaa_portal.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "dteaa_portal.wsgi.application"

# ---------------------------------------------------------------------
# Database (Postgres via DATABASE_URL in prod; SQLite locally)
# ---------------------------------------------------------------------
DATABASES = {
    "default": dj_database_url.parse(
        os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
        conn_max_age=600,
    )
}

# ---------------------------------------------------------------------
# Password validation
# ---------------------------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

AUTHENTICATION_BACKENDS = ["django.contrib.auth.backends.ModelBackend"]

# ---------------------------------------------------------------------
# Internationalization
# ---------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Kolkata"
USE_I18N = True
USE_TZ = True

# ---------------------------------------------------------------------
# Static & Media
# ---------------------------------------------------------------------
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", BASE_DIR / "media"))

# Uploaded photos and receipts go to MEDIA_ROOT/<bucket>/...; WhiteNoise serves hashed static files.
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------
# Auth / Sessions
# ---------------------------------------------------------------------
LOGIN_URL = "/accounts/login/"
LOGIN_REDIRECT_URL = "/"
LOGOUT_REDIRECT_URL = "/accounts/login/"
SESSION_COOKIE_AGE = int(os.getenv("SESSION_COOKIE_AGE", "3600"))  # 1 hour
SESSION_EXPIRE_AT_BROWSER_CLOSE = os.getenv("SESSION_EXPIRE_AT_BROWSER_CLOSE", "True") == "True"
# Wizard drafts live in the session and may carry a photo data URL.
SESSION_ENGINE = "django.contrib.sessions.backends.db"

# ---------------------------------------------------------------------
# Security (enabled when DEBUG=False)
# ---------------------------------------------------------------------
if not DEBUG:
    SECURE_SSL_REDIRECT = os.getenv("SECURE_SSL_REDIRECT", "True") == "True"
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

    SECURE_HSTS_SECONDS = int(os.getenv("SECURE_HSTS_SECONDS", "31536000"))  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True

# Note: Must include scheme.
CSRF_TRUSTED_ORIGINS = list(filter(None, [
    "https://dteaa.org",
    "https://www.dteaa.org",
    os.getenv("EXTRA_CSRF_ORIGIN", "").strip(),
]))

# ---------------------------------------------------------------------
# Email / SMS providers (used in membership/notifications.py)
# ---------------------------------------------------------------------
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "hello@dteaa.org")
MAILTRAP_API_KEY = os.getenv("MAILTRAP_API_KEY", "")
TWO_FACTOR_API_KEY = os.getenv("TWO_FACTOR_API_KEY", "")
TWO_FACTOR_SENDER_ID = os.getenv("TWO_FACTOR_SENDER_ID", "DTEAA")
TWO_FACTOR_VERIFIED_TEMPLATE = os.getenv("TWO_FACTOR_VERIFIED_TEMPLATE", "")

# ---------------------------------------------------------------------
# Membership constants
# ---------------------------------------------------------------------
DTEAA_EVENT_ID = os.getenv("DTEAA_EVENT_ID", "alumni-meet-2025")
DTEAA_ALUMNI_ID_ATTEMPTS = int(os.getenv("DTEAA_ALUMNI_ID_ATTEMPTS", "15"))
DTEAA_RECEIPT_MAX_MB = int(os.getenv("DTEAA_RECEIPT_MAX_MB", "5"))

# ---------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": True},
        "django.request": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "membership": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
