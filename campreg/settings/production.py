from .common import *

# these persons receive error notification
ADMINS = (
    ('Webmasters', 'webmaster@camp.example.org'),
)
MANAGERS = ADMINS

# turn off all debugging
DEBUG = False

# This replaces the "django" logger with one that is pretty much identical to the default, except:
#  - Normally stderr-logging only happens when DEBUG is True, but we want to always log to the UWSGI log (which helps
#    diagnosing startup errors and keeps logs).
#  - The log format is changed to match UWSGI.
#  - The mail_admins handler also sends out WARNING messages, which includes registrations flagged for manual payment
#    reconciliation.
LOGGING = {
    'version': 1,
    # Recommended, otherwise default loggers are disabled but not removed, which can be problematic for non-propagating
    # loggers (which then stop producing output but still prevent propagation).
    'disable_existing_loggers': False,
    'filters': {
        'ignore_expected': {
            '()': 'campreg.common.log.IgnoreExpectedClientErrors',
        },
    },
    'formatters': {
        'verbose': {
            'format': '{asctime} - {levelname} - {name} - {message}',
            'style': '{',
            # This mimics the (rather interesting) uwsgi data format to
            # get a unified log output
            'datefmt': '%a %b %d %H:%M:%S %Y',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
        'mail_admins': {
            'level': 'WARNING',
            # 404s are handled by BrokenLinksEmailMiddleware, 409s are ordinary registration conflicts
            'filters': ['ignore_expected'],
            'class': 'django.utils.log.AdminEmailHandler',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'mail_admins'],
            'level': 'INFO',
        },
        'apps': {
            'handlers': ['console', 'mail_admins'],
            'level': 'INFO',
        },
    },
}

# ##### SERVER CONFIGURATION ##############################
ALLOWED_HOSTS = ['registrations.camp.example.org']

# ##### DATABASE CONFIGURATION ############################
# Admission and capacity checks rely on SELECT ... FOR UPDATE, so production needs a database that supports row locks.
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.mysql',
        'HOST': 'db.local',
        'USER': 'campreg',
        # From local_settings
        'PASSWORD': DATABASE_PASSWORD,
        'NAME': 'campreg',
    },
}

# ##### SECURITY CONFIGURATION ############################

# Note: Webserver guarantees only secure requests are processed and the
# (u)wsgi-protocol seems to pass on secure status automatically. The
# webserver also sets HSTS headers.
# Even so, let Django redirect to HTTPS as well, just in case the
# webserver config gets messed up.
SECURE_SSL_REDIRECT = True
# Session cookies will be marked as secure, so the browser will only
# send them over HTTPS
SESSION_COOKIE_SECURE = True

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
]
