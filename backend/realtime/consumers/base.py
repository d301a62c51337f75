"""Authenticated JSON WebSocket consumer shared by the realtime endpoints."""

import logging
from typing import Any, Dict, Iterable, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from realtime.notifications import requester_group

logger = logging.getLogger(__name__)


class BaseConsumer(AsyncJsonWebsocketConsumer):
    """
    Closes anonymous connections before accepting them.

    Subclasses pick the channel groups a user sits in with `groups_for()` and
    map client message types to handler coroutines in `client_handlers`.
    """

    client_handlers: Dict[str, str] = {"ping": "handle_ping"}

    async def connect(self):
        user = self.scope.get("user")
        if user is None or user.is_anonymous:
            await self.close()
            return

        self.user = user
        self.joined_groups: Set[str] = set()
        for group in self.groups_for(user):
            await self.channel_layer.group_add(group, self.channel_name)
            self.joined_groups.add(group)

        await self.accept()
        await self.send_json(self.greeting())
        logger.debug("WS connect user=%s groups=%s", user.id, sorted(self.joined_groups))

    def groups_for(self, user) -> Iterable[str]:
        return [requester_group(user.id)]

    def greeting(self) -> Dict[str, Any]:
        return {
            "type": "connection_established",
            "user_id": self.user.id,
            "role": self.user.role,
        }

    async def disconnect(self, close_code):
        for group in getattr(self, "joined_groups", ()):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive_json(self, content: Dict[str, Any], **kwargs):
        msg_type = content.get("type")
        if not msg_type:
            await self.send_error("Message type is required")
            return

        handler_name = self.client_handlers.get(msg_type)
        if handler_name is None:
            await self.send_error(f"Unknown message type: {msg_type}")
            return

        try:
            await getattr(self, handler_name)(content)
        except Exception:
            logger.exception("Error handling message type %s", msg_type)
            await self.send_error(f"Error processing {msg_type}")

    async def handle_ping(self, content):
        await self.send_json({"type": "pong"})

    async def send_error(self, message: str):
        await self.send_json({"type": "error", "message": message})
