from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from accounts.models import ActorRole, User
from providers.models import ProviderProfile
from rides.models import Proposal, ProposalStatus, Ride, RideStatus
from services.ride_management import (
	TRANSITIONS,
	ForbiddenError,
	InvalidStateError,
	InvalidTransitionError,
	RideNotFoundError,
	ValidationError,
	accept_proposal,
	allowed_transitions,
	transition_ride_status,
)
from .helpers import make_admin, make_proposal, make_provider, make_requester, make_ride


class TransitionTableTests(TestCase):
	def test_table_covers_every_status_and_role(self):
		for status in RideStatus:
			for role in ActorRole:
				self.assertIsInstance(allowed_transitions(status, role), frozenset)

	def test_pending_to_accepted_is_not_a_generic_transition(self):
		for role in ActorRole:
			self.assertNotIn(RideStatus.ACCEPTED, allowed_transitions(RideStatus.PENDING, role))

	def test_terminal_statuses_have_no_exits(self):
		for status in (RideStatus.COMPLETED, RideStatus.CANCELLED):
			for targets in TRANSITIONS[status].values():
				self.assertEqual(targets, frozenset())

	def test_provider_has_nothing_on_pending(self):
		self.assertEqual(allowed_transitions("PENDING", "provider"), frozenset())

	def test_only_provider_and_admin_start_or_complete(self):
		self.assertNotIn(RideStatus.IN_PROGRESS, allowed_transitions(RideStatus.ACCEPTED, ActorRole.REQUESTER))
		self.assertNotIn(RideStatus.COMPLETED, allowed_transitions(RideStatus.IN_PROGRESS, ActorRole.REQUESTER))
		self.assertIn(RideStatus.COMPLETED, allowed_transitions(RideStatus.IN_PROGRESS, ActorRole.ADMIN))


class TransitionRideStatusTests(TestCase):
	def setUp(self):
		self.requester = make_requester()
		self.provider = make_provider()
		self.other_provider = make_provider("other_provider")
		self.ride = make_ride(self.requester)
		self.proposal = make_proposal(self.ride, self.provider, price="200.00")

	def _accept(self):
		accept_proposal(self.requester, self.ride.id, self.proposal.id)
		self.ride.refresh_from_db()

	def test_happy_path_to_completion(self):
		self._accept()

		result = transition_ride_status(self.provider, self.ride.id, RideStatus.IN_PROGRESS)
		self.assertEqual(result.data.status, RideStatus.IN_PROGRESS)
		self.assertIsNotNone(result.data.started_at)
		self.assertEqual(result.extra["previous_status"], RideStatus.ACCEPTED)

		result = transition_ride_status(self.provider, self.ride.id, RideStatus.COMPLETED)
		ride = result.data
		self.assertEqual(ride.status, RideStatus.COMPLETED)
		self.assertIsNotNone(ride.completed_at)
		self.assertEqual(ride.final_price, Decimal("200.00"))

		self.assertTrue(ProviderProfile.objects.get(user=self.provider).is_available)
		self.assertEqual(User.objects.get(id=self.provider.id).completed_rides, 1)
		self.assertEqual(User.objects.get(id=self.requester.id).completed_rides, 1)

	def test_requester_cancels_pending_ride_and_open_proposals_are_rejected(self):
		result = transition_ride_status(
			self.requester, self.ride.id, RideStatus.CANCELLED, reason="Got help from a friend"
		)

		ride = result.data
		self.assertEqual(ride.status, RideStatus.CANCELLED)
		self.assertEqual(ride.cancelled_by, ActorRole.REQUESTER)
		self.assertEqual(ride.cancellation_reason, "Got help from a friend")
		self.assertIsNotNone(ride.cancelled_at)

		self.proposal.refresh_from_db()
		self.assertEqual(self.proposal.status, ProposalStatus.REJECTED)

	def test_provider_cancel_releases_provider(self):
		self._accept()
		self.assertFalse(ProviderProfile.objects.get(user=self.provider).is_available)

		transition_ride_status(self.provider, self.ride.id, RideStatus.CANCELLED, reason="Truck broke down")

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.cancelled_by, ActorRole.PROVIDER)
		self.assertTrue(ProviderProfile.objects.get(user=self.provider).is_available)
		# provider binding is kept for history
		self.assertEqual(self.ride.provider_id, self.provider.id)

	def test_requester_cannot_start_ride(self):
		self._accept()

		with self.assertRaises(ForbiddenError):
			transition_ride_status(self.requester, self.ride.id, RideStatus.IN_PROGRESS)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.ACCEPTED)

	def test_unbound_provider_is_forbidden(self):
		self._accept()

		with self.assertRaises(ForbiddenError):
			transition_ride_status(self.other_provider, self.ride.id, RideStatus.IN_PROGRESS)

	def test_other_requester_is_forbidden(self):
		with self.assertRaises(ForbiddenError):
			transition_ride_status(make_requester("stranger"), self.ride.id, RideStatus.CANCELLED)

	def test_provider_cannot_touch_pending_ride(self):
		with self.assertRaises(ForbiddenError):
			transition_ride_status(self.provider, self.ride.id, RideStatus.CANCELLED)

	def test_accepting_through_generic_transition_is_invalid(self):
		with self.assertRaises(InvalidTransitionError):
			transition_ride_status(make_admin(), self.ride.id, RideStatus.ACCEPTED)

	def test_terminal_ride_never_moves(self):
		transition_ride_status(self.requester, self.ride.id, RideStatus.CANCELLED)

		for target in (RideStatus.PENDING, RideStatus.IN_PROGRESS, RideStatus.CANCELLED):
			with self.assertRaises(InvalidTransitionError):
				transition_ride_status(make_admin(f"admin_{target}"), self.ride.id, target)

	def test_skipping_in_progress_is_invalid(self):
		self._accept()

		with self.assertRaises(InvalidTransitionError):
			transition_ride_status(self.provider, self.ride.id, RideStatus.COMPLETED)

	def test_admin_may_act_on_any_ride(self):
		self._accept()
		admin = make_admin()

		transition_ride_status(admin, self.ride.id, RideStatus.IN_PROGRESS)
		transition_ride_status(admin, self.ride.id, RideStatus.CANCELLED, reason="Fraud check")

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.CANCELLED)
		self.assertEqual(self.ride.cancelled_by, ActorRole.ADMIN)

	def test_non_admin_cannot_borrow_another_role(self):
		self._accept()

		with self.assertRaises(ForbiddenError):
			transition_ride_status(
				self.requester, self.ride.id, RideStatus.IN_PROGRESS, actor_role=ActorRole.ADMIN
			)

	def test_unknown_status(self):
		with self.assertRaises(ValidationError):
			transition_ride_status(self.requester, self.ride.id, "TELEPORTED")

	def test_unknown_ride(self):
		with self.assertRaises(RideNotFoundError):
			transition_ride_status(self.requester, 424242, RideStatus.CANCELLED)

	def test_requester_can_create_again_after_cancelling(self):
		transition_ride_status(self.requester, self.ride.id, RideStatus.CANCELLED)

		make_ride(self.requester)

		self.assertEqual(Ride.objects.filter(requester=self.requester).count(), 2)

	@patch("realtime.notifications.notify_provider_event")
	@patch("realtime.notifications.notify_requester_event")
	def test_status_change_notifies_both_parties(self, mock_requester, mock_provider):
		self._accept()

		with self.captureOnCommitCallbacks(execute=True):
			transition_ride_status(self.provider, self.ride.id, RideStatus.IN_PROGRESS)

		mock_requester.assert_called_once()
		self.assertEqual(mock_requester.call_args.args[0], "ride_status_changed")
		self.assertEqual(mock_requester.call_args.kwargs["extra"], {"previous_status": RideStatus.ACCEPTED})
		mock_provider.assert_called_once()
		self.assertEqual(mock_provider.call_args.args[2], self.provider.id)

	@patch("services.ride_management.status_transitions.notify_on_commit")
	def test_cancelling_pending_ride_tells_bidders(self, mock_on_commit):
		transition_ride_status(self.requester, self.ride.id, RideStatus.CANCELLED)

		rejected = [
			call.args for call in mock_on_commit.call_args_list
			if len(call.args) > 1 and call.args[1] == "proposal_rejected"
		]
		self.assertEqual(len(rejected), 1)
		self.assertEqual(rejected[0][3], self.provider.id)
		self.assertEqual(Proposal.objects.get(id=self.proposal.id).status, ProposalStatus.REJECTED)


class TransitionMatrixTests(TestCase):
	STAMPS = {
		RideStatus.IN_PROGRESS: "started_at",
		RideStatus.COMPLETED: "completed_at",
		RideStatus.CANCELLED: "cancelled_at",
	}

	def setUp(self):
		self.provider = make_provider()
		self.admin = make_admin()

	def _ride_in(self, status, index):
		requester = make_requester(f"requester_{index}")
		provider = None if status == RideStatus.PENDING else self.provider
		return make_ride(requester, status=status, provider=provider)

	def _actor_for(self, role, ride):
		return {
			ActorRole.REQUESTER: ride.requester,
			ActorRole.PROVIDER: self.provider,
			ActorRole.ADMIN: self.admin,
		}[role]

	def test_every_status_role_target_combination(self):
		index = 0
		for status in RideStatus:
			for role in ActorRole:
				for target in RideStatus:
					index += 1
					ride = self._ride_in(status, index)
					actor = self._actor_for(role, ride)

					with self.subTest(status=status, role=role, target=target):
						if target in TRANSITIONS[status][role]:
							result = transition_ride_status(actor, ride.id, target)
							self.assertEqual(result.data.status, target)
							self.assertIsNotNone(getattr(result.data, self.STAMPS[target]))
							if target == RideStatus.CANCELLED:
								self.assertEqual(result.data.cancelled_by, role)
						else:
							with self.assertRaises((ForbiddenError, InvalidStateError)):
								transition_ride_status(actor, ride.id, target)
							self.assertEqual(Ride.objects.get(id=ride.id).status, status)
