"""
Django settings for shopdesk project - PRODUCTION READY
PostgreSQL in production, SQLite for local development and tests
"""

import dj_database_url
import sys
from pathlib import Path
import os

# ============================================
# LOAD ENVIRONMENT VARIABLES
# ============================================
from dotenv import load_dotenv
load_dotenv()

# ============================================
# BASE DIRECTORY
# ============================================
BASE_DIR = Path(__file__).resolve().parent.parent

# ============================================
# DEBUG SETTING (MUST BE DEFINED EARLY)
# ============================================
DEBUG = os.getenv("DEBUG", "False") == "True"

# Test runs (manage.py test or pytest) always use the local SQLite database
TESTING = 'test' in sys.argv or 'pytest' in sys.modules

# ============================================
# SECURITY SETTINGS
# ============================================
SECRET_KEY = os.getenv("SECRET_KEY")

if not SECRET_KEY:
    if DEBUG or TESTING:
        # Development fallback - NEVER use in production
        SECRET_KEY = 'django-insecure-dev-key-for-local-testing-only-change-in-production'
    else:
        raise ValueError(
            "SECRET_KEY environment variable is not set! "
            "Please set it in the deployment environment."
        )

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

CSRF_TRUSTED_ORIGINS = [
    origin for origin in os.getenv('CSRF_TRUSTED_ORIGINS', '').split(',') if origin
] + [
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# Security settings for production
if not DEBUG and not TESTING:
    SECURE_SSL_REDIRECT = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True

APPEND_SLASH = True

# ============================================
# INSTALLED APPLICATIONS
# ============================================
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Django extensions
    'django_extensions',

    # REST framework
    'rest_framework',
    'rest_framework.authtoken',

    'maintenance.apps.MaintenanceConfig',
]

# ============================================
# MIDDLEWARE
# ============================================
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# ============================================
# URL CONFIGURATION
# ============================================
ROOT_URLCONF = 'shopdesk.urls'

# ============================================
# TEMPLATES
# ============================================
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

                # CUSTOM CONTEXT PROCESSORS
                'maintenance.context_processors.scanner_transitions',
            ],
        },
    },
]

# ============================================
# WSGI APPLICATION
# ============================================
WSGI_APPLICATION = 'shopdesk.wsgi.application'

# ============================================
# DATABASE CONFIGURATION
# ============================================
SQLITE_DATABASE = {
    'ENGINE': 'django.db.backends.sqlite3',
    'NAME': BASE_DIR / 'db.sqlite3',
}

DATABASE_URL = os.getenv('DATABASE_URL') or os.getenv('POSTGRESQL_URL')

if DEBUG or TESTING or 'runserver' in sys.argv:
    # Local development - SQLite
    DATABASES = {'default': SQLITE_DATABASE}
elif DATABASE_URL:
    DATABASES = {
        'default': dj_database_url.parse(DATABASE_URL, conn_max_age=600)
    }
else:
    # Fallback: individual PostgreSQL variables
    db_config = {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.getenv('POSTGRES_DB', os.getenv('PGDATABASE', 'shopdesk')),
        'USER': os.getenv('POSTGRES_USER', os.getenv('PGUSER', 'shopdesk')),
        'PASSWORD': os.getenv('POSTGRES_PASSWORD', os.getenv('PGPASSWORD', '')),
        'HOST': os.getenv('POSTGRES_HOST', os.getenv('PGHOST', 'localhost')),
        'PORT': os.getenv('POSTGRES_PORT', os.getenv('PGPORT', '5432')),
    }

    if db_config['PASSWORD']:
        DATABASES = {'default': db_config}
    else:
        # Ultimate fallback to SQLite (not recommended for production)
        print("⚠️  WARNING: No PostgreSQL credentials found, falling back to SQLite")
        DATABASES = {'default': SQLITE_DATABASE}

# ============================================
# PASSWORD VALIDATION
# ============================================
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 8,
        }
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# ============================================
# INTERNATIONALIZATION
# ============================================
LANGUAGE_CODE = 'ar'
TIME_ZONE = os.getenv('TIME_ZONE', 'Asia/Jerusalem')
USE_I18N = True
USE_TZ = True

# ============================================
# STORAGE CONFIGURATION
# ============================================
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": (
            "django.contrib.staticfiles.storage.StaticFilesStorage"
            if DEBUG or TESTING
            else "whitenoise.storage.CompressedManifestStaticFilesStorage"
        ),
    },
}

# Whitenoise configuration
WHITENOISE_KEEP_ONLY_HASHED_FILES = not DEBUG
WHITENOISE_AUTOREFRESH = DEBUG
WHITENOISE_MAX_AGE = 31536000 if not DEBUG else 0

# ============================================
# STATIC FILES (CSS, JavaScript, Images)
# ============================================
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / "staticfiles"

# ============================================
# AUTHENTICATION & AUTHORIZATION
# ============================================
LOGIN_URL = '/admin/login/'
LOGIN_REDIRECT_URL = '/maintenance/scanner/'
LOGOUT_REDIRECT_URL = '/'

SESSION_COOKIE_AGE = 86400
SESSION_SAVE_EVERY_REQUEST = True
SESSION_COOKIE_HTTPONLY = True

# ============================================
# REST FRAMEWORK CONFIGURATION
# ============================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.TokenAuthentication',
    ],

    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],

    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 50,

    'DEFAULT_FILTER_BACKENDS': [
        'rest_framework.filters.SearchFilter',
        'rest_framework.filters.OrderingFilter',
    ],

    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
        'rest_framework.renderers.BrowsableAPIRenderer',
    ],

    'DATETIME_FORMAT': '%Y-%m-%d %H:%M:%S',
    'DATE_FORMAT': '%Y-%m-%d',
}

# ============================================
# MAINTENANCE SCANNER CONFIGURATION
# ============================================
MAINTENANCE_SCANNER = {
    # Scan log ring buffer (most recent entries kept per operator)
    'LOG_CAPACITY': 50,

    # Keyboard-wedge scanners: submit after this many ms of silence
    'KEY_DEBOUNCE_MS': 300,
    'PASTE_DEBOUNCE_MS': 80,
    'MIN_BUFFER_LENGTH': 3,

    # Camera decoding
    'CAMERA_SAMPLE_INTERVAL': 0.1,
    'CAMERA_CONFIRM_DELAY': 0.8,
    'CAMERA_MAX_DEVICES': 10,
}

# ============================================
# LOGGING CONFIGURATION
# ============================================
LOGS_DIR = Path(os.getenv('LOGS_DIR', BASE_DIR / 'logs'))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,

    'formatters': {
        'verbose': {
            'format': '[{levelname}] {asctime} {module} {process:d} {thread:d} - {message}',
            'style': '{',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
        'simple': {
            'format': '{asctime} [{levelname}] {message}',
            'style': '{',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },

    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
            'level': 'INFO',
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOGS_DIR / 'django.log',
            'maxBytes': 1024 * 1024 * 10,
            'backupCount': 5,
            'formatter': 'verbose',
            'level': 'INFO',
        },
        'maintenance_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOGS_DIR / 'maintenance.log',
            'maxBytes': 1024 * 1024 * 10,
            'backupCount': 5,
            'formatter': 'verbose',
            'level': 'INFO',
        },
        'error_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOGS_DIR / 'errors.log',
            'maxBytes': 1024 * 1024 * 10,
            'backupCount': 5,
            'formatter': 'verbose',
            'level': 'ERROR',
        },
    },

    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
        'django.request': {
            'handlers': ['error_file', 'console'],
            'level': 'ERROR',
            'propagate': False,
        },
        'maintenance': {
            'handlers': ['console', 'maintenance_file', 'error_file'],
            'level': 'INFO',
            'propagate': True,
        },
    },

    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}

# ============================================
# DEFAULT PRIMARY KEY FIELD TYPE
# ============================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ============================================
# SETTINGS VALIDATION
# ============================================
def validate_settings():
    """Validate critical settings on startup"""

    warnings = []

    if not DEBUG and DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
        warnings.append("⚠️  Using SQLite in production. Configure PostgreSQL for better performance.")

    if not DEBUG and SECRET_KEY.startswith('django-insecure-'):
        warnings.append("❌ Using development SECRET_KEY in production!")

    scanner = MAINTENANCE_SCANNER
    if scanner['MIN_BUFFER_LENGTH'] < 1:
        warnings.append("⚠️  MAINTENANCE_SCANNER['MIN_BUFFER_LENGTH'] must be at least 1")
    if scanner['LOG_CAPACITY'] < 1:
        warnings.append("⚠️  MAINTENANCE_SCANNER['LOG_CAPACITY'] must be at least 1")

    if warnings:
        print("\n" + "=" * 70)
        print("⚠️  SETTINGS WARNINGS:")
        for warning in warnings:
            print(f"   {warning}")
        print("=" * 70 + "\n")


# Run validation on startup
if 'runserver' in sys.argv or 'migrate' in sys.argv:
    validate_settings()
