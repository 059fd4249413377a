"""
Django settings for the dvdrentalbi reporting project.

Connection details for the rental database come from the environment:

    DVDRENTAL_DB_ENGINE    postgresql (default) or mysql
    DVDRENTAL_DB_NAME      database name, default "dvdrental"
    DVDRENTAL_DB_USER / DVDRENTAL_DB_PASSWORD
    DVDRENTAL_DB_HOST / DVDRENTAL_DB_PORT
    DVDRENTAL_LOG_LEVEL    level of the dvdrentalbi loggers, default WARNING
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dvdrentalbi-local-only')

DEBUG = os.environ.get('DJANGO_DEBUG', '0') == '1'

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'dvdrentalbi',
]

DEFAULT_AUTO_FIELD = 'django.db.models.AutoField'

USE_TZ = False
TIME_ZONE = 'UTC'


# Database
#
# "default" is unused by the reports; every dvdrentalbi model is routed to
# the "dvdrental" alias by DvdRentalRouter.

DVDRENTAL_DATABASE = 'dvdrental'
DVDRENTAL_MANAGED_SCHEMA = False

DB_ENGINES = {
    'postgresql': 'django.db.backends.postgresql',
    'mysql': 'django.db.backends.mysql',
}

DVDRENTAL_DB_ENGINE = os.environ.get('DVDRENTAL_DB_ENGINE', 'postgresql')
if DVDRENTAL_DB_ENGINE not in DB_ENGINES:
    raise ValueError(
        f"DVDRENTAL_DB_ENGINE must be one of {', '.join(DB_ENGINES)}, got {DVDRENTAL_DB_ENGINE!r}"
    )


def _rental_database():
    database = {
        'ENGINE': DB_ENGINES[DVDRENTAL_DB_ENGINE],
        'NAME': os.environ.get('DVDRENTAL_DB_NAME', 'dvdrental'),
        'USER': os.environ.get('DVDRENTAL_DB_USER', 'postgres'),
        'PASSWORD': os.environ.get('DVDRENTAL_DB_PASSWORD', ''),
        'HOST': os.environ.get('DVDRENTAL_DB_HOST', 'localhost'),
        'PORT': os.environ.get('DVDRENTAL_DB_PORT', ''),
    }
    if DVDRENTAL_DB_ENGINE == 'postgresql':
        database['OPTIONS'] = {'options': '-c default_transaction_read_only=on'}
    return database


DATABASES = {
    'default': {},
    DVDRENTAL_DATABASE: _rental_database(),
}

DATABASE_ROUTERS = ['dvdrentalbi.router.DvdRentalRouter']


# Logging

LOG_LEVEL = os.environ.get('DVDRENTAL_LOG_LEVEL', 'WARNING').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'dvdrentalbi': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'django.db.backends': {
            'handlers': ['console'],
            'level': 'DEBUG' if DEBUG else 'WARNING',
            'propagate': False,
        },
    },
}
