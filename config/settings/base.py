"""Base settings for all environments.

This configuration file defines the common settings used by every
environment. It follows Django's standard configuration structure and
integrates Django Rest Framework (boundary parsing) and Celery (periodic
lifecycle tasks). Environment specific values are overridden in `dev.py`,
`prod.py` or `test.py`.
"""

import os
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'replace-me-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS: list[str] = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')

# Application definition

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    # Third‑party apps
    'rest_framework',
    # Domain apps
    'apps.scheduling',
    'apps.bookings',
]

# Database
# https://docs.djangoproject.com/en/5.0/ref/settings/#databases
# The booking overlap constraint is installed on PostgreSQL only.

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', BASE_DIR / 'db.sqlite3'),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

# Internationalization
# https://docs.djangoproject.com/en/5.0/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = os.environ.get('DJANGO_TIME_ZONE', 'Africa/Lagos')

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Django Rest Framework (serializers only, no routing)
REST_FRAMEWORK = {
    'DATE_INPUT_FORMATS': ['iso-8601'],
}

# Celery configuration (Broker and Result backend handled in environment)
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
CELERY_TIMEZONE = TIME_ZONE

# Viewing scheduler
SCHEDULING_DEFAULT_TIMEZONE = os.environ.get('SCHEDULING_DEFAULT_TIMEZONE', 'Africa/Lagos')
SCHEDULING_DEFAULT_SLOT_MINUTES = int(os.environ.get('SCHEDULING_DEFAULT_SLOT_MINUTES', 30))

# Shortlet booking lifecycle
SHORTLET_STATUS_POLL_TIMEOUT_MS = int(os.environ.get('SHORTLET_STATUS_POLL_TIMEOUT_MS', 60000))
SHORTLET_HOST_RESPONSE_HOURS = int(os.environ.get('SHORTLET_HOST_RESPONSE_HOURS', 24))
SHORTLET_PAYMENT_WINDOW_MINUTES = int(os.environ.get('SHORTLET_PAYMENT_WINDOW_MINUTES', 30))
SHORTLET_STUCK_PAYMENT_MINUTES = int(os.environ.get('SHORTLET_STUCK_PAYMENT_MINUTES', 30))

# Paystack
PAYSTACK_SECRET_KEY = os.environ.get('PAYSTACK_SECRET_KEY', '')
PAYSTACK_API_BASE_URL = os.environ.get('PAYSTACK_API_BASE_URL', 'https://api.paystack.co')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {'handlers': ['console'], 'level': 'WARNING'},
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'apps': {
            'handlers': ['console'],
            'level': os.environ.get('APP_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'shared': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
    },
}
