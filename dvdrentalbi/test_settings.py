from dvdrentalbi.settings import *  # noqa: F401,F403


# Throwaway in-memory databases with the rental tables created from the models.
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
    'dvdrental': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

DVDRENTAL_MANAGED_SCHEMA = True
