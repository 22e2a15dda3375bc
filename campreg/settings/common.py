# Python imports
import os
import sys
from os.path import abspath, basename, dirname, join, normpath

from django.utils.translation import gettext_lazy as _

# Import local_settings, if they exist
try:
    from .local_settings import *
except ImportError:
    pass


# ##### PATH CONFIGURATION ################################

# fetch Django's project directory
DJANGO_ROOT = dirname(dirname(abspath(__file__)))

# fetch the project_root
PROJECT_ROOT = dirname(DJANGO_ROOT)

# the name of the whole site
SITE_NAME = basename(DJANGO_ROOT)

# runtime data (secret key, sqlite database, collected static files) lives here
RUN_ROOT = join(PROJECT_ROOT, 'run')

# collect static files here
STATIC_ROOT = join(RUN_ROOT, 'static')

# look for templates here
# This is an internal setting, used in the TEMPLATES directive
PROJECT_TEMPLATES = [
    join(PROJECT_ROOT, 'templates'),
]

# ##### Internationalization ##############################
LANGUAGE_CODE = 'en'
TIME_ZONE = 'Europe/Amsterdam'

USE_I18N = False

# enable timezone awareness by default
USE_TZ = True

LANGUAGES = (
    ('nl', _('Dutch')),
    ('en', _('English')),
)

MONETARY_CURRENCY = '€'
MONETARY_DECIMAL_PLACES = 2
MONETARY_MAX_DIGITS = 12

DEFAULT_AUTO_FIELD = 'django.db.models.AutoField'

# ##### APPLICATION CONFIGURATION #########################

# these are the apps
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'reversion',
    'apps.core.apps.CoreConfig',
    'apps.camps.apps.CampsConfig',
    'apps.registrations.apps.RegistrationsConfig',
    'apps.payments.apps.PaymentsConfig',
    'apps.audit.apps.AuditConfig',
]

# Middlewares
MIDDLEWARE = [
    'django.middleware.common.BrokenLinkEmailsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# template stuff
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': PROJECT_TEMPLATES,
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.contrib.auth.context_processors.auth',
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

LOGIN_URL = 'admin:login'

# ##### REGISTRATION CONFIGURATION ########################

# What happens when a registration requests a job or camping option that is full: "waitlist" creates the registration
# on the waiting list without a slot for the full resource, "reject" refuses the registration altogether.
REGISTRATION_CAPACITY_POLICY = 'waitlist'

# "automatic" promotes the oldest eligible waitlisted registration whenever a slot frees up, "manual" leaves promotion
# to an administrator editing the registration.
REGISTRATION_WAITLIST_PROMOTION = 'automatic'

# Seasons that can be registered for, relative to the current year.
REGISTRATION_MIN_SEASON = 2000
REGISTRATION_MAX_SEASONS_AHEAD = 1

# ##### PAYMENT CONFIGURATION #############################
PAYMENT_CURRENCY = 'EUR'
MOLLIE_API_KEY = os.environ.get('MOLLIE_API_KEY', '')

# ##### SECURITY CONFIGURATION ############################

# We store the secret key here
# The required SECRET_KEY is fetched at the end of this file
SECRET_FILE = normpath(join(RUN_ROOT, 'SECRET.key'))

# ##### EMAIL CONFIGURATION ################################
DEFAULT_FROM_EMAIL = 'registrations@camp.example.org'
BCC_EMAIL_TO = ['registrations@camp.example.org']
SERVER_EMAIL = 'registrations@camp.example.org'
EMAIL_SUBJECT_PREFIX = "Camp registrations: "

# Dispatch e-mail using local sendmail, or equivalent
EMAIL_BACKEND = 'django_sendmail_backend.backends.EmailBackend'
SENDMAIL_BINARY = '/usr/sbin/sendmail'

# ##### DJANGO RUNNING CONFIGURATION ######################

# the default WSGI application
WSGI_APPLICATION = '%s.wsgi.application' % SITE_NAME

# the root URL configuration
ROOT_URLCONF = '%s.urls' % SITE_NAME

# the URL for static files
STATIC_URL = '/static/'

TEST_RUNNER = '%s.testrunner.CustomRunner' % SITE_NAME

# ##### DEBUG CONFIGURATION ###############################
DEBUG = False

# ##### LOGGING CONFIGURATION #############################

# Registration services log through the "apps" logger hierarchy. Production replaces the "django" logger as well, see
# production.py.
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{asctime} - {levelname} - {name} - {message}',
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
        'apps': {
            'handlers': ['console'],
            # Keep test output readable
            'level': 'CRITICAL' if 'test' in sys.argv else 'INFO',
        },
    },
}


# finally grab the SECRET KEY
try:
    SECRET_KEY = open(SECRET_FILE).read().strip()
except IOError:
    try:
        from django.utils.crypto import get_random_string
        chars = 'abcdefghijklmnopqrstuvwxyz0123456789!$%&()=+-_'
        SECRET_KEY = get_random_string(50, chars)
        os.makedirs(RUN_ROOT, exist_ok=True)
        with open(SECRET_FILE, 'w') as f:
            f.write(SECRET_KEY)
    except IOError:
        raise Exception('Could not open %s for writing!' % SECRET_FILE)
