"""
Development settings
"""
from .base import *

DEBUG = True

ALLOWED_HOSTS = ['*']

# Show policy/analytics debug lines while developing
LOGGING['loggers']['']['level'] = env('LOG_LEVEL', default='DEBUG')

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'
