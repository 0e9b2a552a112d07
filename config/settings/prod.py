"""
Production settings
"""
import os

from .base import *

DEBUG = False

# Production security settings
SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# Production database (must be PostgreSQL); missing DATABASE_URL raises
_default_db = env.db('DATABASE_URL')
_default_db.setdefault('CONN_MAX_AGE', 60)
_default_db.setdefault('ATOMIC_REQUESTS', True)
DATABASES['default'] = _default_db

# File logs in production, next to the console handler
os.makedirs(LOG_DIR, exist_ok=True)
LOGGING['handlers']['file'] = {
    'class': 'logging.handlers.RotatingFileHandler',
    'filename': str(LOG_DIR / 'app.log'),
    'maxBytes': 1024 * 1024 * 5,  # 5 MB
    'backupCount': 3,
    'formatter': 'standard',
}
LOGGING['loggers']['django']['handlers'].append('file')
LOGGING['loggers']['']['handlers'].append('file')
