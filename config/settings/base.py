"""
Base Django settings for the project.
Common settings shared across all environments.
"""
import os
import environ
from pathlib import Path
from datetime import timedelta

# Build paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Environment variables
env = environ.Env(
    DEBUG=(bool, False),
    EMAIL_DELIVERY_ENABLED=(bool, False),
    WORKFLOW_AUTOMATION_DELAY=(float, 5.0),
    MAGIC_LINK_TTL_MINUTES=(int, 15),
    FACTURE_PAYMENT_TERM_MONTHS=(int, 1),
)
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

# Security
SECRET_KEY = env('SECRET_KEY', default='trame-insecure-development-key')
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=[])

# Application definition
INSTALLED_APPS = [
    'daphne',
    'channels',

    'django_crontab',
    # Django apps
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party apps
    'rest_framework',
    'django_filters',
    'drf_yasg',
    'djoser',

    # Local apps
    'apps.core',
    'apps.users',
    'apps.clients',
    'apps.chantiers',
    'apps.articles',
    'apps.devis',
    'apps.factures',
    'apps.notifications',
    'apps.company',
    'apps.workflows',
    'apps.dashboard',
]

ASGI_APPLICATION = 'config.asgi.application'

CRONJOBS = [
    ('*/15 * * * *', 'django.core.management.call_command', ['check_workflows']),
    ('0 6 * * *', 'django.core.management.call_command', ['mark_overdue_factures']),
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'apps.core.middleware.SessionGateMiddleware',
    'apps.core.middleware.CurrentUserMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Database
DATABASES = {
    'default': env.db('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
LANGUAGE_CODE = 'fr-fr'
TIME_ZONE = 'Europe/Paris'
USE_I18N = True
USE_TZ = True

# Static and uploaded files
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = 'media/'
MEDIA_ROOT = BASE_DIR / 'media'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Custom user model
AUTH_USER_MODEL = 'users.CustomUser'

# REST Framework configuration
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'apps.users.authentication.CookieJWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'apps.core.pagination.StaticPagination',
    'PAGE_SIZE': 10,
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
        'rest_framework.filters.SearchFilter',
        'rest_framework.filters.OrderingFilter',
    ],
    'EXCEPTION_HANDLER': 'apps.core.exceptions.custom_exception_handler',
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
}

# Simple JWT configuration
SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=env.int('ACCESS_TOKEN_MINUTES', default=60)),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=env.int('REFRESH_TOKEN_DAYS', default=7)),
    'ROTATE_REFRESH_TOKENS': False,
    'BLACKLIST_AFTER_ROTATION': False,
    'UPDATE_LAST_LOGIN': True,
    'ALGORITHM': 'HS256',
    'SIGNING_KEY': SECRET_KEY,
    'AUTH_HEADER_TYPES': ('Bearer',),
    'AUTH_HEADER_NAME': 'HTTP_AUTHORIZATION',
    'USER_ID_FIELD': 'id',
    'USER_ID_CLAIM': 'user_id',
}

# Session cookies carrying the JWT pair
AUTH_COOKIE_ACCESS = env('AUTH_COOKIE_ACCESS', default='trame-access')
AUTH_COOKIE_REFRESH = env('AUTH_COOKIE_REFRESH', default='trame-refresh')
AUTH_COOKIE_SECURE = env.bool('AUTH_COOKIE_SECURE', default=False)
AUTH_COOKIE_SAMESITE = 'Lax'

# Paths the session gate never redirects nor refreshes
SESSION_GATE_EXEMPT_PREFIXES = (
    '/auth/callback',
    '/static/',
    '/media/',
    '/favicon.ico',
)

MAGIC_LINK_TTL_MINUTES = env('MAGIC_LINK_TTL_MINUTES')
SITE_URL = env('SITE_URL', default='http://localhost:8000')

# Swagger settings
SWAGGER_SETTINGS = {
    'SECURITY_DEFINITIONS': {
        'Bearer': {
            'type': 'apiKey',
            'name': 'Authorization',
            'in': 'header',
            'description': "JWT Authorization header using the Bearer scheme. Example: 'Authorization: Bearer {token}'",
        }
    },
    'USE_SESSION_AUTH': False,
    'LOGIN_URL': None,
    'LOGOUT_URL': None,
}

DJOSER = {
    'USER_ID_FIELD': 'id',
    'LOGIN_FIELD': 'username',
    'SERIALIZERS': {
        'user': 'apps.users.serializers.UserSerializer',
        'current_user': 'apps.users.serializers.UserSerializer',
    },
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'trame-pages',
    }
}

# Page data cache lifetime (seconds); revalidation bumps the path version
PAGE_CACHE_TIMEOUT = env.int('PAGE_CACHE_TIMEOUT', default=300)

# E-mail
EMAIL_CONFIG = env.email_url('EMAIL_URL', default='consolemail://')
vars().update(EMAIL_CONFIG)
DEFAULT_FROM_EMAIL = env('DEFAULT_FROM_EMAIL', default='Trame <no-reply@trame.app>')
# When disabled, outgoing mail is only logged and reported as simulated
EMAIL_DELIVERY_ENABLED = env('EMAIL_DELIVERY_ENABLED')

# Workflow automation
WORKFLOW_AUTOMATION_DELAY = env('WORKFLOW_AUTOMATION_DELAY')

# Invoices: new drafts are due this many months after issue
FACTURE_PAYMENT_TERM_MONTHS = env('FACTURE_PAYMENT_TERM_MONTHS')
