from datetime import timedelta
from pathlib import Path

from .config import get_settings

env = get_settings()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = env.secret_key
DEBUG = env.debug
ALLOWED_HOSTS = env.allowed_hosts_list

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'rest_framework',
    'rest_framework.authtoken',
    'accountapp',
    'carsapp',
    'bookingapp',
    'reviewapp',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
]

ROOT_URLCONF = 'rentalhub.urls'
WSGI_APPLICATION = 'rentalhub.wsgi.application'

if env.db_engine.endswith('sqlite3'):
    DATABASES = {
        'default': {
            'ENGINE': env.db_engine,
            'NAME': BASE_DIR / env.db_name,
            'OPTIONS': {
                'timeout': env.db_lock_timeout_seconds,
                # Writers queue on the busy timeout from BEGIN.
                'transaction_mode': 'IMMEDIATE',
            },
            # File-backed so test threads share it under the busy timeout.
            'TEST': {'NAME': BASE_DIR / f'test_{env.db_name}'},
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': env.db_engine,
            'NAME': env.db_name,
            'USER': env.db_user,
            'PASSWORD': env.db_password,
            'HOST': env.db_host,
            'PORT': env.db_port,
        }
    }

AUTH_USER_MODEL = 'accountapp.User'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
}

# Bookings
RENTAL_CANCELLATION_WINDOW = timedelta(hours=env.cancellation_window_hours)
RENTAL_DEFAULT_CURRENCY = env.default_currency
PAYMENT_WEBHOOK_SECRET = env.payment_webhook_secret

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': env.log_level,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
