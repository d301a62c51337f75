"""
Notification helpers for sending WebSocket messages to connected clients.

Every ride event goes to a personal channel group:
    - user_<requester_id>      requester-side events
    - provider_<provider_id>   provider-side events

Delivery is best-effort. The ride services schedule these helpers with
`notify_on_commit` so nothing is sent for a transaction that rolls back.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

logger = logging.getLogger(__name__)


def requester_group(user_id: int) -> str:
    return f"user_{user_id}"


def provider_group(user_id: int) -> str:
    return f"provider_{user_id}"


def _send(group: str, payload: Dict[str, Any]) -> bool:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer available, dropping %s", payload.get("type"))
        return False

    logger.debug("WS -> %s: %s", group, payload)
    async_to_sync(channel_layer.group_send)(group, payload)
    return True


def _ride_payload(event_type: str, ride, message: str, extra: Dict[str, Any] | None) -> Dict[str, Any]:
    from rides.serializers import RideSerializer

    payload = {
        "type": event_type,
        "ride_id": ride.id,
        "status": ride.status,
        "ride_data": RideSerializer(ride).data,
        **(extra or {}),
    }
    if message:
        payload["message"] = message
    return payload


# ---------------------- Ride Event Notifications ----------------------

def notify_requester_event(
    event_type: str,
    ride,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send a ride event to the requester through user_<requester_id>.

    Args:
        event_type: Handler name in consumer (new_proposal, ride_status_changed)
        ride: Ride model instance
        message: Optional message to include
        extra: Additional payload data

    Returns:
        True if sent, False otherwise
    """
    if not ride.requester_id:
        return False
    return _send(requester_group(ride.requester_id), _ride_payload(event_type, ride, message, extra))


def notify_provider_event(
    event_type: str,
    ride,
    provider_id: int | None,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send a ride event to one provider through provider_<provider_id>.

    Args:
        event_type: Handler name in consumer (proposal_accepted, proposal_rejected, ride_status_changed)
        ride: Ride model instance
        provider_id: Target provider's user ID
        message: Optional message to include
        extra: Additional payload data
    """
    if not provider_id:
        return False
    payload = _ride_payload(event_type, ride, message, {"provider_id": provider_id, **(extra or {})})
    return _send(provider_group(provider_id), payload)


def notify_proposal_resolution(ride, winner_id: int, loser_ids: Iterable[int]) -> None:
    """Tell the winning provider about the assignment and every loser about the rejection."""
    notify_provider_event(
        "proposal_accepted",
        ride,
        winner_id,
        "Your proposal was accepted. Head to the pickup location.",
    )
    for provider_id in loser_ids:
        notify_provider_event(
            "proposal_rejected",
            ride,
            provider_id,
            "The client chose another proposal.",
        )


def notify_status_change(ride, previous_status: str) -> None:
    """Fan a status change out to the requester and the bound provider."""
    extra = {"previous_status": previous_status}
    notify_requester_event("ride_status_changed", ride, extra=extra)
    if ride.provider_id:
        notify_provider_event("ride_status_changed", ride, ride.provider_id, extra=extra)


def notify_on_commit(func, *args, **kwargs) -> None:
    """Run a notification helper after the surrounding transaction commits."""
    def _deliver():
        try:
            func(*args, **kwargs)
        except Exception:
            logger.exception("Failed to deliver %s", getattr(func, "__name__", func))

    transaction.on_commit(_deliver)
