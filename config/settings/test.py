"""
Test settings for the Inkwell publishing platform.
"""

from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# Run Celery tasks inline, no broker needed
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PUBLISHING_RUN_ON_STARTUP = False
PUBLISHING_RETRY_DELAY = 0

# Keep test runs off the log file
LOGGING['handlers']['file'] = {
    'class': 'logging.NullHandler',
}
