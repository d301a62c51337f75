import logging

import redis
from channels.layers import get_channel_layer
from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from rides.models import Ride
from rides.tasks import expire_stale_proposals_task

logger = logging.getLogger(__name__)


def _probe_database():
    Ride.objects.exists()


def _probe_redis():
    redis.Redis.from_url(settings.REDIS_URL, socket_timeout=3).ping()


def _probe_channels():
    if get_channel_layer() is None:
        raise RuntimeError("no channel layer")


def _probe_celery():
    if not expire_stale_proposals_task:
        raise RuntimeError("task not registered")


PROBES = (
    ("database", _probe_database),
    ("redis", _probe_redis),
    ("channels", _probe_channels),
    ("celery", _probe_celery),
)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """Health check endpoint for monitoring system status"""
    services = {}
    for name, probe in PROBES:
        try:
            probe()
            services[name] = "healthy"
        except Exception as e:
            logger.warning("Health probe %s failed: %s", name, e)
            services[name] = f"unhealthy: {e}"

    healthy = all(state == "healthy" for state in services.values())
    return Response(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
