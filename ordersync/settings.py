import os
from decimal import Decimal

import dj_database_url


def get_bool_from_env(name, default_value):
    if name in os.environ:
        value = os.environ[name]
        return value.lower() in ("1", "true", "yes", "on")
    return default_value


def get_list(text):
    return [item.strip() for item in text.split(",") if item.strip()]


BASE_DIR = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))

DEBUG = get_bool_from_env("DEBUG", False)

SECRET_KEY = os.environ.get("SECRET_KEY", "")
if not SECRET_KEY and DEBUG:
    SECRET_KEY = "ordersync-insecure-development-key"

ALLOWED_HOSTS = get_list(os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1"))

DATABASE_CONNECTION_DEFAULT_NAME = "default"
DATABASES = {
    DATABASE_CONNECTION_DEFAULT_NAME: dj_database_url.config(
        default=f"sqlite:///{os.path.join(BASE_DIR, 'ordersync.sqlite3')}",
        conn_max_age=int(os.environ.get("DB_CONN_MAX_AGE", 600)),
    )
}

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

TIME_ZONE = "UTC"
USE_TZ = True
LANGUAGE_CODE = "en"

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "graphene_django",
    "ordersync.core",
    "ordersync.product",
    "ordersync.warehouse",
    "ordersync.shipping",
    "ordersync.order",
    "ordersync.payment",
]

MIDDLEWARE = [
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "ordersync.urls"

GRAPHENE = {
    "SCHEMA": "ordersync.graphql.api.schema",
}

DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")
DEFAULT_CURRENCY_CODE_LENGTH = 3
DEFAULT_MAX_DIGITS = 12
DEFAULT_DECIMAL_PLACES = 2

# Import path of the payment gateway adapter used by settlement.
PAYMENT_GATEWAY = os.environ.get(
    "PAYMENT_GATEWAY", "ordersync.payment.gateway.DummyGateway"
)

# New orders are flagged importable ("yes") instead of "no".
ORDERSYNC_IMPORT_BY_DEFAULT = get_bool_from_env("ORDERSYNC_IMPORT_BY_DEFAULT", True)

# "shipment" keeps the authoritative shipping price on one shipment,
# "adjustment" keeps all of it in the order level "Standard Shipping" adjustment.
ORDERSYNC_EXPRESS_SHIPPING_PRICE = os.environ.get(
    "ORDERSYNC_EXPRESS_SHIPPING_PRICE", "shipment"
)

# Orders completed within this window and not yet exported still hold demand
# the external inventory figures do not know about.
ORDERSYNC_UNSYNCED_WINDOW_HOURS = int(
    os.environ.get("ORDERSYNC_UNSYNCED_WINDOW_HOURS", 12)
)

ORDERSYNC_DEFAULT_LOCATION_NAME = os.environ.get(
    "ORDERSYNC_DEFAULT_LOCATION_NAME", "default"
)

ZERO = Decimal("0.00")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": (
                "%(levelname)s %(asctime)s %(name)s %(process)d %(thread)d "
                "%(message)s"
            )
        },
    },
    "handlers": {
        "default": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {"level": "INFO", "propagate": True},
        "ordersync": {
            "handlers": ["default"],
            "level": os.environ.get("ORDERSYNC_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
