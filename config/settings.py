"""Django settings for the payment processor project."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-payment-processor-dev-key')
DEBUG = os.getenv('DJANGO_DEBUG', 'false').lower() == 'true'
ALLOWED_HOSTS = os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'payments',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'config.urls'

DATABASES = {
    'default': {
        'ENGINE': os.getenv('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.getenv('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv('DB_USER', ''),
        'PASSWORD': os.getenv('DB_PASSWORD', ''),
        'HOST': os.getenv('DB_HOST', ''),
        'PORT': os.getenv('DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'

# No authentication layer: the API is open to the upstream gateway
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
}

# External payment services, in failover priority order
PAYMENT_SERVICE_TIMEOUT = float(os.getenv('PAYMENT_SERVICE_TIMEOUT', '30'))

PAYMENT_SERVICES = {
    'default': {
        'base_url': os.getenv('DEFAULT_PAYMENT_SERVICE_URL', 'http://localhost:8001'),
        'timeout': PAYMENT_SERVICE_TIMEOUT,
    },
    'fallback': {
        'base_url': os.getenv('FALLBACK_PAYMENT_SERVICE_URL', 'http://localhost:8002'),
        'timeout': PAYMENT_SERVICE_TIMEOUT,
    },
}

PAYMENT_SERVICE_USER_AGENT = 'PaymentProcessor/1.0'

# Retry budgets for the background jobs (attempts include the first run)
PAYMENT_JOB_RETRY_POLICY = {
    'creation': {'attempts': 3, 'wait': 1},
    'registration_unavailable': {'attempts': 5, 'wait': 2},
    'registration_unexpected': {'attempts': 3, 'wait': 1},
}

# Celery
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_TIMEZONE = TIME_ZONE

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
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'payments': {
            'handlers': ['console'],
            'level': os.getenv('PAYMENTS_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
