from unittest.mock import AsyncMock, MagicMock, patch

from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.db import transaction
from django.test import TestCase, TransactionTestCase
from rest_framework_simplejwt.tokens import AccessToken

from realtime.consumers.ride_events import RideEventsConsumer
from realtime.middleware import JWTAuthMiddleware
from realtime.notifications import (
	notify_on_commit,
	notify_proposal_resolution,
	notify_requester_event,
	notify_status_change,
	provider_group,
	requester_group,
)
from rides.models import RideStatus
from rides.tests.helpers import make_provider, make_requester, make_ride


class RideEventsConsumerTests(TransactionTestCase):
	def setUp(self):
		self.requester = make_requester()
		self.provider = make_provider()
		self.ride = make_ride(self.requester)

	async def _connect(self, user):
		communicator = WebsocketCommunicator(RideEventsConsumer.as_asgi(), "/ws/rides/")
		communicator.scope["user"] = user
		connected, _ = await communicator.connect()
		self.assertTrue(connected)
		greeting = await communicator.receive_json_from()
		self.assertEqual(greeting["type"], "connection_established")
		return communicator

	async def test_anonymous_connection_is_refused(self):
		communicator = WebsocketCommunicator(RideEventsConsumer.as_asgi(), "/ws/rides/")
		communicator.scope["user"] = AnonymousUser()

		connected, _ = await communicator.connect()

		self.assertFalse(connected)

	async def test_greeting_carries_identity(self):
		communicator = WebsocketCommunicator(RideEventsConsumer.as_asgi(), "/ws/rides/")
		communicator.scope["user"] = self.provider
		await communicator.connect()

		greeting = await communicator.receive_json_from()

		self.assertEqual(greeting["user_id"], self.provider.id)
		self.assertEqual(greeting["role"], "provider")
		await communicator.disconnect()

	async def test_ping(self):
		communicator = await self._connect(self.requester)

		await communicator.send_json_to({"type": "ping"})

		self.assertEqual(await communicator.receive_json_from(), {"type": "pong"})
		await communicator.disconnect()

	async def test_messages_need_a_type(self):
		communicator = await self._connect(self.requester)

		await communicator.send_json_to({"ride_id": 1})
		response = await communicator.receive_json_from()

		self.assertEqual(response["type"], "error")
		await communicator.disconnect()

	async def test_requester_group_events_are_forwarded(self):
		communicator = await self._connect(self.requester)

		await get_channel_layer().group_send(
			requester_group(self.requester.id),
			{"type": "new_proposal", "ride_id": self.ride.id, "status": "PENDING"},
		)

		event = await communicator.receive_json_from()
		self.assertEqual(event["type"], "new_proposal")
		self.assertEqual(event["ride_id"], self.ride.id)
		await communicator.disconnect()

	async def test_provider_joins_its_own_group(self):
		communicator = await self._connect(self.provider)

		await get_channel_layer().group_send(
			provider_group(self.provider.id),
			{"type": "proposal_rejected", "ride_id": self.ride.id},
		)

		event = await communicator.receive_json_from()
		self.assertEqual(event["type"], "proposal_rejected")
		await communicator.disconnect()

	async def test_requester_never_joins_provider_group(self):
		communicator = await self._connect(self.requester)

		await get_channel_layer().group_send(
			provider_group(self.requester.id),
			{"type": "proposal_accepted", "ride_id": self.ride.id},
		)

		self.assertTrue(await communicator.receive_nothing())
		await communicator.disconnect()

	async def test_get_ride_snapshot(self):
		communicator = await self._connect(self.requester)

		await communicator.send_json_to({"type": "get_ride", "ride_id": self.ride.id})
		response = await communicator.receive_json_from()

		self.assertEqual(response["type"], "ride_snapshot")
		self.assertEqual(response["ride"]["id"], self.ride.id)
		self.assertEqual(response["ride"]["status"], RideStatus.PENDING)
		await communicator.disconnect()

	async def test_get_ride_hides_other_peoples_rides(self):
		stranger = await self._make_stranger()
		communicator = await self._connect(stranger)

		await communicator.send_json_to({"type": "get_ride", "ride_id": self.ride.id})
		response = await communicator.receive_json_from()

		self.assertEqual(response["type"], "error")
		await communicator.disconnect()

	async def _make_stranger(self):
		return await database_sync_to_async(make_requester)("stranger")


class JWTAuthMiddlewareTests(TransactionTestCase):
	def setUp(self):
		self.requester = make_requester()
		self.token = str(AccessToken.for_user(self.requester))
		self.application = JWTAuthMiddleware(RideEventsConsumer.as_asgi())

	async def test_token_in_querystring_authenticates(self):
		communicator = WebsocketCommunicator(self.application, f"/ws/rides/?token={self.token}")

		connected, _ = await communicator.connect()
		greeting = await communicator.receive_json_from()

		self.assertTrue(connected)
		self.assertEqual(greeting["user_id"], self.requester.id)
		await communicator.disconnect()

	async def test_bad_token_is_refused(self):
		communicator = WebsocketCommunicator(self.application, "/ws/rides/?token=not-a-jwt")

		connected, _ = await communicator.connect()

		self.assertFalse(connected)

	async def test_missing_token_is_refused(self):
		communicator = WebsocketCommunicator(self.application, "/ws/rides/")

		connected, _ = await communicator.connect()

		self.assertFalse(connected)


class NotificationHelperTests(TestCase):
	def setUp(self):
		self.requester = make_requester()
		self.provider = make_provider()
		self.ride = make_ride(self.requester)
		self.layer = MagicMock()
		self.layer.group_send = AsyncMock()

	def _sent(self):
		return [(call.args[0], call.args[1]) for call in self.layer.group_send.await_args_list]

	def test_requester_event_goes_to_user_group(self):
		with patch("realtime.notifications.get_channel_layer", return_value=self.layer):
			self.assertTrue(notify_requester_event("new_proposal", self.ride, "Hi", {"proposal": {"id": 9}}))

		[(group, payload)] = self._sent()
		self.assertEqual(group, f"user_{self.requester.id}")
		self.assertEqual(payload["type"], "new_proposal")
		self.assertEqual(payload["ride_id"], self.ride.id)
		self.assertEqual(payload["proposal"], {"id": 9})
		self.assertEqual(payload["message"], "Hi")
		self.assertEqual(payload["ride_data"]["id"], self.ride.id)

	def test_resolution_reaches_winner_and_losers(self):
		loser = make_provider("loser")

		with patch("realtime.notifications.get_channel_layer", return_value=self.layer):
			notify_proposal_resolution(self.ride, self.provider.id, [loser.id])

		sent = self._sent()
		self.assertEqual(sent[0][0], f"provider_{self.provider.id}")
		self.assertEqual(sent[0][1]["type"], "proposal_accepted")
		self.assertEqual(sent[1][0], f"provider_{loser.id}")
		self.assertEqual(sent[1][1]["type"], "proposal_rejected")

	def test_status_change_skips_missing_provider(self):
		with patch("realtime.notifications.get_channel_layer", return_value=self.layer):
			notify_status_change(self.ride, RideStatus.PENDING)

		[(group, payload)] = self._sent()
		self.assertEqual(group, f"user_{self.requester.id}")
		self.assertEqual(payload["previous_status"], RideStatus.PENDING)

	def test_no_channel_layer_is_not_an_error(self):
		with patch("realtime.notifications.get_channel_layer", return_value=None):
			self.assertFalse(notify_requester_event("new_proposal", self.ride))

	def test_on_commit_delivery_swallows_failures(self):
		failing = MagicMock(side_effect=RuntimeError("redis down"), __name__="failing")

		with self.assertLogs("realtime.notifications", level="ERROR"):
			with self.captureOnCommitCallbacks(execute=True):
				notify_on_commit(failing, 1, key="value")

		failing.assert_called_once_with(1, key="value")

	def test_rolled_back_work_sends_nothing(self):
		callback = MagicMock(__name__="callback")

		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			try:
				with transaction.atomic():
					notify_on_commit(callback)
					raise RuntimeError("abort")
			except RuntimeError:
				pass

		self.assertEqual(callbacks, [])
		callback.assert_not_called()
