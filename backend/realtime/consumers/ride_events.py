"""Ride events WebSocket consumer shared by requesters and providers."""

from typing import Any, Dict

from channels.db import database_sync_to_async

from accounts.models import ActorRole
from realtime.notifications import provider_group
from .base import BaseConsumer


class RideEventsConsumer(BaseConsumer):
    """
    Every user joins user_<id>; providers also join provider_<id>.

    Server-side events arrive through group_send and are forwarded as-is:
        - new_proposal          (requester)
        - proposal_accepted     (winning provider)
        - proposal_rejected     (losing providers)
        - ride_status_changed   (requester and bound provider)

    Clients may send:
        - {"type": "ping"}
        - {"type": "get_ride", "ride_id": <id>}  snapshot of a visible ride
    """

    client_handlers = {**BaseConsumer.client_handlers, "get_ride": "handle_get_ride"}

    def groups_for(self, user):
        groups = list(super().groups_for(user))
        if user.role == ActorRole.PROVIDER:
            groups.append(provider_group(user.id))
        return groups

    def greeting(self):
        return {**super().greeting(), "message": "Ride events connection established"}

    async def handle_get_ride(self, content: Dict[str, Any]):
        ride_id = content.get("ride_id")
        if ride_id is None:
            await self.send_error("get_ride requires ride_id")
            return

        snapshot = await self._ride_snapshot(ride_id)
        if snapshot is None:
            await self.send_error("Ride not found or not visible to you")
            return
        await self.send_json({"type": "ride_snapshot", "ride_id": ride_id, "ride": snapshot})

    @database_sync_to_async
    def _ride_snapshot(self, ride_id):
        from rides.serializers import RideSerializer
        from services.ride_management import RideManagementError, get_ride

        try:
            ride = get_ride(int(ride_id), actor=self.user)
        except (RideManagementError, TypeError, ValueError):
            return None
        return RideSerializer(ride).data

    # group_send payloads are built by realtime.notifications
    async def forward_ride_event(self, event):
        await self.send_json(event)

    new_proposal = forward_ride_event
    proposal_accepted = forward_ride_event
    proposal_rejected = forward_ride_event
    ride_status_changed = forward_ride_event
