"""
Staging settings.

Same as production settings except:
- provider simulation stays disabled
- fulfillment runs on the Celery worker
- verbose logging for the fulfillment wire logger
"""

from .settings import *  # noqa: F401,F403

TOPUP_API_SIMULATE = False
FULFILLMENT_DISPATCH_MODE = "async"

DEBUG = False
ALLOWED_HOSTS = ['*']  # Configure appropriately for staging

LOGGING['loggers']['fulfillment.wire']['level'] = 'DEBUG'  # noqa: F405
LOGGING['loggers']['apps']['level'] = 'DEBUG'  # noqa: F405
