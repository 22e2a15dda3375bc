# Python imports
from os.path import join

from .common import *

# ##### DEBUG CONFIGURATION ###############################
DEBUG = True

# allow all hosts during development
ALLOWED_HOSTS = ['*']

# ##### EMAIL CONFIGURATION ###############################
DEFAULT_FROM_EMAIL = "registrations-test@camp.example.org"
BCC_EMAIL_TO = []
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# ##### DATABASE CONFIGURATION ############################
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': join(RUN_ROOT, 'dev.sqlite3'),
    },
}

# Used by debug views
INTERNAL_IPS = [
    '127.0.0.1',
]
