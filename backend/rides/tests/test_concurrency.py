import threading
from unittest.mock import patch

from django.db import connection
from django.test import TransactionTestCase

from providers.models import ProviderProfile
from rides.models import Proposal, ProposalStatus, Ride, RideStatus
from services.ride_management import (
	ActiveRideExistsError,
	InvalidStateError,
	ProviderNotAvailableError,
	accept_proposal,
	create_ride_request,
)
from .helpers import make_proposal, make_provider, make_requester, make_ride


def run_concurrently(targets):
	"""Start every callable at the same time; collect results or raised errors."""
	barrier = threading.Barrier(len(targets))
	outcomes = [None] * len(targets)

	def worker(index, target):
		try:
			barrier.wait()
			outcomes[index] = target()
		except Exception as exc:
			outcomes[index] = exc
		finally:
			connection.close()

	threads = [
		threading.Thread(target=worker, args=(index, target))
		for index, target in enumerate(targets)
	]
	for thread in threads:
		thread.start()
	for thread in threads:
		thread.join()
	return outcomes


@patch("services.ride_management.acceptance.notify_on_commit")
class ConcurrentAcceptanceTests(TransactionTestCase):
	def test_racing_accepts_on_one_ride_have_a_single_winner(self, _notify):
		for trial in range(3):
			requester = make_requester(f"requester_{trial}")
			ride = make_ride(requester)
			proposals = [
				make_proposal(ride, make_provider(f"p{trial}_{n}"), price=f"{100 + n}.00")
				for n in range(3)
			]

			outcomes = run_concurrently([
				(lambda pid=proposal.id: accept_proposal(requester, ride.id, pid))
				for proposal in proposals
			])

			wins = [o for o in outcomes if not isinstance(o, Exception)]
			losses = [o for o in outcomes if isinstance(o, Exception)]
			self.assertEqual(len(wins), 1, outcomes)
			for loss in losses:
				self.assertIsInstance(loss, InvalidStateError)

			ride.refresh_from_db()
			self.assertEqual(ride.status, RideStatus.ACCEPTED)
			accepted = Proposal.objects.filter(ride=ride, status=ProposalStatus.ACCEPTED)
			self.assertEqual(accepted.count(), 1)
			self.assertEqual(accepted.get().provider_id, ride.provider_id)
			self.assertEqual(
				Proposal.objects.filter(ride=ride, status=ProposalStatus.REJECTED).count(), 2
			)

			# Only the winner is held
			held = ProviderProfile.objects.filter(
				user_id__in=[p.provider_id for p in proposals], is_available=False
			)
			self.assertEqual(list(held.values_list("user_id", flat=True)), [ride.provider_id])

	def test_one_provider_accepted_on_two_rides_is_bound_once(self, _notify):
		provider = make_provider("shared")
		first_requester = make_requester("first")
		second_requester = make_requester("second")
		first_ride = make_ride(first_requester)
		second_ride = make_ride(second_requester)
		first_bid = make_proposal(first_ride, provider)
		second_bid = make_proposal(second_ride, provider)

		outcomes = run_concurrently([
			lambda: accept_proposal(first_requester, first_ride.id, first_bid.id),
			lambda: accept_proposal(second_requester, second_ride.id, second_bid.id),
		])

		wins = [o for o in outcomes if not isinstance(o, Exception)]
		self.assertEqual(len(wins), 1, outcomes)
		self.assertIsInstance(
			next(o for o in outcomes if isinstance(o, Exception)),
			ProviderNotAvailableError,
		)
		self.assertEqual(Ride.objects.filter(provider=provider).count(), 1)
		self.assertEqual(
			Ride.objects.filter(id__in=[first_ride.id, second_ride.id], status=RideStatus.PENDING).count(),
			1,
		)


class ConcurrentRideCreationTests(TransactionTestCase):
	def test_requester_gets_one_active_ride(self):
		requester = make_requester()

		def create():
			return create_ride_request(
				requester,
				service_type="LIGHT_TOW",
				pickup_latitude=-23.55,
				pickup_longitude=-46.63,
			)

		outcomes = run_concurrently([create, create, create])

		errors = [o for o in outcomes if isinstance(o, Exception)]
		self.assertEqual(len(errors), 2, outcomes)
		for error in errors:
			self.assertIsInstance(error, ActiveRideExistsError)
		self.assertEqual(Ride.objects.filter(requester=requester).count(), 1)
