"""
Test settings for eco_server project.
"""

from .base import *

# Use SQLite for testing
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# Disable migrations for faster testing
class DisableMigrations:
    def __contains__(self, item):
        return True
    
    def __getitem__(self, item):
        return None

MIGRATION_MODULES = DisableMigrations()

# Disable logging during tests
LOGGING_CONFIG = None

ECO_LEDGER_STORAGE = 'database'
ECO_LEDGER_MAX_ATTEMPTS = 5

ECO_RATE_LIMIT_STORAGE = 'cache'
ECO_RATE_LIMIT_REQUESTS = 100
ECO_RATE_LIMIT_WINDOW_MS = 15 * 60 * 1000
ECO_RATE_LIMIT_FAIL_OPEN = False
