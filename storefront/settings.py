"""
Storefront Django settings

Every environment variable the checkout core depends on is read HERE, once,
at process start. Views and services read `django.conf.settings` (through
checkout.config), never os.environ.

CHANGE LOG
----------
2026-10-12 • Stripe secret resolution moved into settings                    # CHANGED:
- STRIPE_MODE=test|live selects STRIPE_TEST_SECRET_KEY / STRIPE_LIVE_SECRET_KEY,
  falling back to STRIPE_SECRET_KEY. Resolved once here instead of per request.

2026-10-05 • Webhook insecure test mode settings
- WEBHOOK_TEST_MODE / WEBHOOK_TEST_TOKEN (both required to enable the bypass).

2026-09-28 • Logging encoding → settings-level (UTF-8)
- RotatingFileHandler writes logs/storefront.log with encoding='utf-8'.
"""

from pathlib import Path
import os

from dotenv import load_dotenv

# ========= Base / Env =========
BASE_DIR = Path(__file__).resolve().parent.parent

ENV_CANDIDATES = [
    BASE_DIR / ".env",         # Local: project root
    BASE_DIR.parent / ".env",  # Local: repo root (if checked out nested)
]
for _env_file in ENV_CANDIDATES:
    if _env_file.exists():
        load_dotenv(_env_file)
        break
else:
    load_dotenv()  # fallback (no-op if missing)


def _env(name, default=None):
    val = os.getenv(name)
    return val.strip() if val not in (None, "") and val.strip() else default


def _first_env(*names, default=None):
    """First non-empty value among `names` (deployment aliases for one secret)."""
    for name in names:
        val = _env(name)
        if val:
            return val
    return default


# ========= Secret Key =========
DJANGO_SECRET_KEY = os.getenv("DJANGO_SECRET_KEY")
if not DJANGO_SECRET_KEY:
    raise ValueError("DJANGO_SECRET_KEY must be set in .env file")
SECRET_KEY = DJANGO_SECRET_KEY

DEBUG = os.getenv("DEBUG", "False") == "True"

# ========= Hosts / CSRF / Security =========
ALLOWED_HOSTS = [
    "127.0.0.1",
    "localhost",
    "testserver",
] + (os.getenv("ADDITIONAL_HOSTS", "").split(",") if os.getenv("ADDITIONAL_HOSTS") else [])

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG

# ========= Installed apps =========
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "checkout",
]

# ========= Middleware =========
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    # Must run before anything renders "/" so the redirect wins.
    "checkout.middleware.OrderIdRedirectMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# ========= URL / Templates / WSGI =========
ROOT_URLCONF = "storefront.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "storefront.wsgi.application"

# ========= Database =========
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
        "OPTIONS": {"timeout": 30},
    }
}

# ========= Password validation =========
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ========= I18N =========
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ========= Security headers =========
SECURE_CONTENT_TYPE_NOSNIFF = True

if not DEBUG:
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True

# ========= Static / Media =========
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ========= Defaults =========
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ========= REST framework =========
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    # Money goes out as JSON numbers, matching the checkout function payloads.
    "COERCE_DECIMAL_TO_STRING": False,
}

# ========= Stripe =========
STRIPE_MODE = "test" if (_env("STRIPE_MODE", "live") or "live").lower() == "test" else "live"

if STRIPE_MODE == "test":
    STRIPE_SECRET_KEY = _first_env("STRIPE_TEST_SECRET_KEY", "STRIPE_SECRET_KEY")
else:
    STRIPE_SECRET_KEY = _first_env("STRIPE_LIVE_SECRET_KEY", "STRIPE_SECRET_KEY")

STRIPE_WEBHOOK_SECRET = _env("STRIPE_WEBHOOK_SECRET")
STRIPE_API_VERSION = _env("STRIPE_API_VERSION", "2024-06-20")
STRIPE_CURRENCY = (_env("STRIPE_CURRENCY", "pkr") or "pkr").lower()
STRIPE_TIMEOUT_SECONDS = float(_env("STRIPE_TIMEOUT_SECONDS", "10"))

# Public storefront base URL used for success/cancel redirects.
PUBLIC_SITE_URL = _first_env("PUBLIC_SITE_URL", "SITE_URL")

# Insecure webhook test mode: BOTH must be set, plus a matching X-Test-Secret header.
WEBHOOK_TEST_MODE = _env("WEBHOOK_TEST_MODE", "")
WEBHOOK_TEST_TOKEN = _env("WEBHOOK_TEST_TOKEN", "")

# How long the confirmation page should keep polling a still-pending order.
ORDER_CONFIRMATION_POLL_SECONDS = int(_env("ORDER_CONFIRMATION_POLL_SECONDS", "60"))

# ========= Logging =========
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "file": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "storefront.log",
            "maxBytes": 1024 * 1024 * 15,
            "backupCount": 10,
            "formatter": "verbose",
            "encoding": "utf-8",
        },
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "checkout": {
            "handlers": ["file", "console"],
            "level": "INFO",
            "propagate": False,
        },
        "django": {
            "handlers": ["file"],
            "level": "ERROR",
            "propagate": True,
        },
    },
}
