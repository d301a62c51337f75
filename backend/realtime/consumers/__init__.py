"""Realtime consumers for WebSocket communication."""

from .base import BaseConsumer
from .ride_events import RideEventsConsumer

__all__ = [
    "BaseConsumer",
    "RideEventsConsumer",
]
