"""Production overrides: Redis channel layer, strict hosts, quieter logs."""

import os

from .settings import *  # noqa: F401,F403
from .settings import BASE_DIR, LOGGING, REDIS_URL

SECRET_KEY = os.environ["SECRET_KEY"]
DEBUG = False
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(',')

CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Group fan-out must reach every daphne process
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {
            "hosts": [REDIS_URL],
        },
    }
}

LOGGING['root']['level'] = os.getenv("LOG_LEVEL", "WARNING")
