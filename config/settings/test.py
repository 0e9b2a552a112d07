"""
Test settings. Defaults to in-memory SQLite; export DATABASE_URL to run against PostgreSQL.
"""
import os

os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from .base import *

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOGGING['loggers']['']['level'] = 'WARNING'
