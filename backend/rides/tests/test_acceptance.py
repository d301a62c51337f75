from unittest.mock import patch

from django.db.models import ProtectedError
from django.test import TestCase

from providers.models import ProviderProfile
from rides.models import Proposal, ProposalStatus, Ride, RideStatus
from services.ride_management import (
	ForbiddenError,
	ProposalExpiredError,
	ProposalNotFoundError,
	ProviderNotAvailableError,
	RideNotAvailableError,
	RideNotFoundError,
	accept_proposal,
)
from .helpers import make_proposal, make_provider, make_requester, make_ride


class AcceptProposalTests(TestCase):
	def setUp(self):
		self.requester = make_requester()
		self.provider_one = make_provider("provider_one")
		self.provider_two = make_provider("provider_two")
		self.provider_three = make_provider("provider_three")

		self.ride = make_ride(self.requester)
		self.p1 = make_proposal(self.ride, self.provider_one, price="150.00", estimated_time=30)
		self.p2 = make_proposal(self.ride, self.provider_two, price="120.00", estimated_time=20)
		self.p3 = make_proposal(self.ride, self.provider_three, price="130.00", estimated_time=25)

	def test_accept_binds_provider_and_rejects_the_rest(self):
		result = accept_proposal(self.requester, self.ride.id, self.p2.id)

		self.assertTrue(result.success)
		ride = result.data
		self.assertEqual(ride.status, RideStatus.ACCEPTED)
		self.assertEqual(ride.provider_id, self.provider_two.id)
		self.assertEqual(str(ride.agreed_price), "120.00")
		self.assertEqual(ride.estimated_time, 20)
		self.assertIsNotNone(ride.accepted_at)

		self.p1.refresh_from_db()
		self.p2.refresh_from_db()
		self.p3.refresh_from_db()
		self.assertEqual(self.p2.status, ProposalStatus.ACCEPTED)
		self.assertIsNotNone(self.p2.accepted_at)
		self.assertEqual(self.p1.status, ProposalStatus.REJECTED)
		self.assertEqual(self.p3.status, ProposalStatus.REJECTED)
		self.assertIsNotNone(self.p1.rejected_at)

		self.assertFalse(ProviderProfile.objects.get(user=self.provider_two).is_available)
		self.assertTrue(ProviderProfile.objects.get(user=self.provider_one).is_available)
		self.assertEqual(result.extra["rejected"], 2)

	def test_second_accept_on_same_ride_fails_without_changes(self):
		accept_proposal(self.requester, self.ride.id, self.p2.id)

		with self.assertRaises(RideNotAvailableError):
			accept_proposal(self.requester, self.ride.id, self.p1.id)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.provider_id, self.provider_two.id)
		self.assertEqual(
			Proposal.objects.filter(ride=self.ride, status=ProposalStatus.ACCEPTED).count(), 1
		)

	def test_unknown_ride(self):
		with self.assertRaises(RideNotFoundError):
			accept_proposal(self.requester, 999999, self.p1.id)

	def test_proposal_of_another_ride(self):
		other_requester = make_requester("other")
		other_ride = make_ride(other_requester)
		foreign = make_proposal(other_ride, self.provider_one)

		with self.assertRaises(ProposalNotFoundError):
			accept_proposal(self.requester, self.ride.id, foreign.id)

	def test_only_owner_can_accept(self):
		stranger = make_requester("stranger")

		with self.assertRaises(ForbiddenError):
			accept_proposal(stranger, self.ride.id, self.p1.id)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.PENDING)

	def test_expired_proposal_cannot_be_accepted(self):
		stale = make_proposal(self.ride, make_provider("late"), expires_in=-5)

		with self.assertRaises(ProposalExpiredError):
			accept_proposal(self.requester, self.ride.id, stale.id)

		self.ride.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.PENDING)
		self.assertIsNone(self.ride.provider_id)

	def test_rejected_proposal_cannot_be_accepted(self):
		Proposal.objects.filter(id=self.p1.id).update(status=ProposalStatus.REJECTED)

		with self.assertRaises(ProposalExpiredError):
			accept_proposal(self.requester, self.ride.id, self.p1.id)

	def test_busy_provider_cannot_be_bound(self):
		ProviderProfile.objects.filter(user=self.provider_one).update(is_available=False)

		with self.assertRaises(ProviderNotAvailableError):
			accept_proposal(self.requester, self.ride.id, self.p1.id)

		self.ride.refresh_from_db()
		self.p1.refresh_from_db()
		self.assertEqual(self.ride.status, RideStatus.PENDING)
		self.assertEqual(self.p1.status, ProposalStatus.PENDING)

	def test_assigned_provider_account_cannot_be_deleted(self):
		accept_proposal(self.requester, self.ride.id, self.p2.id)

		for provider in (self.provider_two, self.provider_one):
			with self.subTest(provider=provider.username), self.assertRaises(ProtectedError):
				provider.delete()

		ride = Ride.objects.get(id=self.ride.id)
		self.assertEqual(ride.status, RideStatus.ACCEPTED)
		self.assertEqual(ride.provider_id, self.provider_two.id)
		self.assertEqual(Proposal.objects.filter(ride=self.ride).count(), 3)
		self.assertTrue(ProviderProfile.objects.filter(user=self.provider_two).exists())

	def test_provider_cannot_be_double_booked_across_rides(self):
		other_requester = make_requester("other")
		other_ride = make_ride(other_requester)
		other_bid = make_proposal(other_ride, self.provider_one)

		accept_proposal(self.requester, self.ride.id, self.p1.id)

		with self.assertRaises(ProviderNotAvailableError):
			accept_proposal(other_requester, other_ride.id, other_bid.id)

		other_ride.refresh_from_db()
		self.assertEqual(other_ride.status, RideStatus.PENDING)
		self.assertIsNone(other_ride.provider_id)

	@patch("realtime.notifications.notify_provider_event")
	def test_winner_and_losers_are_notified_after_commit(self, mock_notify):
		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			accept_proposal(self.requester, self.ride.id, self.p2.id)

		self.assertEqual(len(callbacks), 1)
		sent = [(c.args[0], c.args[2]) for c in mock_notify.call_args_list]
		self.assertIn(("proposal_accepted", self.provider_two.id), sent)
		self.assertIn(("proposal_rejected", self.provider_one.id), sent)
		self.assertIn(("proposal_rejected", self.provider_three.id), sent)
		self.assertEqual(len(sent), 3)

	@patch("realtime.notifications.notify_provider_event")
	def test_failed_accept_sends_nothing(self, mock_notify):
		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			with self.assertRaises(ForbiddenError):
				accept_proposal(make_requester("stranger"), self.ride.id, self.p1.id)

		self.assertEqual(callbacks, [])
		mock_notify.assert_not_called()
