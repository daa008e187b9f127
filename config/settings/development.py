"""
Development settings for the Inkwell publishing platform.
"""

from .base import *

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '[::1]', 'testserver']

# Disable HTTPS redirect in development
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# Show more detailed error pages
DEBUG_PROPAGATE_EXCEPTIONS = True

# Development logging - more verbose, no file rotation (Windows file locking issue)
LOGGING['root']['level'] = 'DEBUG'
LOGGING['loggers']['apps']['level'] = 'DEBUG'

LOGGING['handlers']['file'] = {
    'class': 'logging.FileHandler',
    'filename': LOG_DIR / 'django.log',
    'formatter': 'verbose',
    'mode': 'a',
}
