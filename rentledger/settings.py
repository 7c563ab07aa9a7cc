# rentledger/settings.py
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "False").lower() == "true"
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "tenants",
    "properties",
    "leases",
    "rent",
    "payments",
]

DB_ENGINE = os.environ.get("DB_ENGINE", "sqlite").lower()

if DB_ENGINE == "mysql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.mysql",
            "NAME": os.environ.get("DB_NAME", "rentledger"),
            "USER": os.environ.get("DB_USER", "root"),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "127.0.0.1"),
            "PORT": os.environ.get("DB_PORT", "3306"),
            "OPTIONS": {
                "charset": "utf8mb4",
                # store calls that hang surface as StoreUnavailable
                "connect_timeout": int(os.environ.get("DB_CONNECT_TIMEOUT", "10")),
                "read_timeout": int(os.environ.get("DB_CONNECT_TIMEOUT", "10")),
                "write_timeout": int(os.environ.get("DB_CONNECT_TIMEOUT", "10")),
                "isolation_level": "read committed",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = False
USE_TZ = True

# ---- rent ledger policy ----
RENT_GRACE_DAYS = int(os.environ.get("RENT_GRACE_DAYS", "5"))
RENT_MAX_FUTURE_PERIODS = int(os.environ.get("RENT_MAX_FUTURE_PERIODS", "12"))
RENT_STRICT_CADENCE = os.environ.get("RENT_STRICT_CADENCE", "False").lower() == "true"
# e.g. {"monthly": "50.00"}; cadences not listed keep the built-in fee
RENT_LATE_FEES = {}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
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
        "rent": {"level": LOG_LEVEL},
        "payments": {"level": LOG_LEVEL},
        "leases": {"level": LOG_LEVEL},
    },
}
