from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings

from rides.models import Ride, RideStatus, ServiceType, Urgency
from services.ride_management import (
	ActiveRideExistsError,
	ForbiddenError,
	GeoFilter,
	RideNotFoundError,
	RideOrdering,
	RideQuery,
	ValidationError,
	accept_proposal,
	create_ride_request,
	get_current_provider_ride,
	get_current_requester_ride,
	get_ride,
	list_rides,
)
from .helpers import make_admin, make_proposal, make_provider, make_requester, make_ride


class CreateRideRequestTests(TestCase):
	def setUp(self):
		self.requester = make_requester()

	def test_create_pending_ride(self):
		result = create_ride_request(
			self.requester,
			service_type=ServiceType.TIRE_CHANGE,
			pickup_latitude=-23.561414,
			pickup_longitude=-46.655881,
			pickup_address="Rua Augusta, 500",
			destination_latitude=-23.5874,
			destination_longitude=-46.6576,
			description="Flat front tire",
			urgency=Urgency.HIGH,
			estimated_price=Decimal("80.00"),
		)

		ride = result.data
		self.assertTrue(result.success)
		self.assertEqual(ride.status, RideStatus.PENDING)
		self.assertIsNone(ride.provider_id)
		self.assertEqual(ride.urgency, Urgency.HIGH)
		self.assertEqual(ride.requester_id, self.requester.id)

	def test_second_active_ride_conflicts(self):
		create_ride_request(self.requester, ServiceType.FUEL, -23.5, -46.6)

		with self.assertRaises(ActiveRideExistsError):
			create_ride_request(self.requester, ServiceType.BATTERY, -23.5, -46.6)

		self.assertEqual(Ride.objects.filter(requester=self.requester).count(), 1)

	def test_estimated_price_must_be_a_positive_number(self):
		for price in ("abc", "-5", 0, "NaN"):
			with self.subTest(price=price), self.assertRaises(ValidationError):
				create_ride_request(self.requester, ServiceType.FUEL, -23.5, -46.6, estimated_price=price)

		self.assertFalse(Ride.objects.filter(requester=self.requester).exists())

	def test_completed_ride_does_not_block(self):
		make_ride(self.requester, status=RideStatus.COMPLETED)

		create_ride_request(self.requester, ServiceType.FUEL, -23.5, -46.6)

		self.assertEqual(Ride.objects.filter(requester=self.requester).count(), 2)

	def test_provider_cannot_request(self):
		with self.assertRaises(ForbiddenError):
			create_ride_request(make_provider(), ServiceType.FUEL, -23.5, -46.6)

	def test_invalid_input(self):
		bad_calls = [
			dict(service_type="HELICOPTER", pickup_latitude=0, pickup_longitude=0),
			dict(service_type=ServiceType.FUEL, pickup_latitude=91, pickup_longitude=0),
			dict(service_type=ServiceType.FUEL, pickup_latitude=0, pickup_longitude=-181),
			dict(service_type=ServiceType.FUEL, pickup_latitude=0, pickup_longitude=0, urgency="WHENEVER"),
			dict(service_type=ServiceType.FUEL, pickup_latitude=0, pickup_longitude=0, destination_latitude=10),
			dict(service_type=ServiceType.FUEL, pickup_latitude=0, pickup_longitude=0, payment_method="BITCOIN"),
			dict(service_type=ServiceType.FUEL, pickup_latitude=0, pickup_longitude=0, estimated_price=Decimal("0")),
		]
		for kwargs in bad_calls:
			with self.assertRaises(ValidationError, msg=kwargs):
				create_ride_request(self.requester, **kwargs)

		self.assertFalse(Ride.objects.exists())


class GetRideTests(TestCase):
	def setUp(self):
		self.requester = make_requester()
		self.provider = make_provider()
		self.ride = make_ride(self.requester)

	def test_without_actor(self):
		self.assertEqual(get_ride(self.ride.id).id, self.ride.id)

	def test_missing(self):
		with self.assertRaises(RideNotFoundError):
			get_ride(123456)

	def test_visibility(self):
		self.assertEqual(get_ride(self.ride.id, actor=self.requester).id, self.ride.id)
		# open for bids
		self.assertEqual(get_ride(self.ride.id, actor=self.provider).id, self.ride.id)
		self.assertEqual(get_ride(self.ride.id, actor=make_admin()).id, self.ride.id)

		with self.assertRaises(ForbiddenError):
			get_ride(self.ride.id, actor=make_requester("nosy"))

	def test_assigned_ride_hidden_from_other_providers(self):
		bid = make_proposal(self.ride, self.provider)
		accept_proposal(self.requester, self.ride.id, bid.id)

		self.assertEqual(get_ride(self.ride.id, actor=self.provider).provider_id, self.provider.id)
		with self.assertRaises(ForbiddenError):
			get_ride(self.ride.id, actor=make_provider("rival"))


class ListRidesTests(TestCase):
	def setUp(self):
		self.alice = make_requester("alice")
		self.bob = make_requester("bob")
		self.carol = make_requester("carol")

		# Sao Paulo centre, ~4km away, Rio de Janeiro
		self.centre = make_ride(self.alice, status=RideStatus.COMPLETED)
		self.nearby = make_ride(
			self.bob, service_type=ServiceType.FUEL,
			pickup_latitude=Decimal("-23.589000"), pickup_longitude=Decimal("-46.634000"),
		)
		self.far = make_ride(
			self.carol, service_type=ServiceType.BATTERY,
			pickup_latitude=Decimal("-22.906847"), pickup_longitude=Decimal("-43.172897"),
		)
		# created_at is auto_now_add; spread the rows out for ordering checks
		base = self.centre.created_at
		Ride.objects.filter(id=self.nearby.id).update(created_at=base + timedelta(minutes=1))
		Ride.objects.filter(id=self.far.id).update(created_at=base + timedelta(minutes=2))

	def test_unfiltered_newest_first(self):
		page = list_rides(RideQuery())

		self.assertEqual([r.id for r in page.items], [self.far.id, self.nearby.id, self.centre.id])
		self.assertEqual(page.total, 3)
		self.assertEqual(page.pages, 1)

	def test_filters_combine(self):
		page = list_rides(RideQuery(statuses=[RideStatus.PENDING], service_types=[ServiceType.FUEL]))

		self.assertEqual([r.id for r in page.items], [self.nearby.id])

	def test_requester_scope(self):
		page = list_rides(RideQuery(requester_id=self.alice.id))

		self.assertEqual([r.id for r in page.items], [self.centre.id])

	def test_unassigned_only(self):
		provider = make_provider()
		bid = make_proposal(self.nearby, provider)
		accept_proposal(self.bob, self.nearby.id, bid.id)

		page = list_rides(RideQuery(unassigned_only=True, ordering=RideOrdering.OLDEST))

		self.assertEqual([r.id for r in page.items], [self.centre.id, self.far.id])

	def test_radius_and_nearest_ordering(self):
		here = GeoFilter(latitude=-23.550520, longitude=-46.633308, radius_km=10)

		nearest = list_rides(RideQuery(near=here, ordering=RideOrdering.NEAREST))
		self.assertEqual([r.id for r in nearest.items], [self.centre.id, self.nearby.id])

		newest = list_rides(RideQuery(near=here))
		self.assertEqual([r.id for r in newest.items], [self.nearby.id, self.centre.id])

	@override_settings(RIDES_PAGE_SIZE=2)
	def test_pagination(self):
		first = list_rides(RideQuery(ordering=RideOrdering.OLDEST))
		second = list_rides(RideQuery(ordering=RideOrdering.OLDEST, page=2))
		beyond = list_rides(RideQuery(page=5))

		self.assertEqual([r.id for r in first.items], [self.centre.id, self.nearby.id])
		self.assertEqual([r.id for r in second.items], [self.far.id])
		self.assertEqual(first.pages, 2)
		self.assertEqual(beyond.items, [])
		self.assertEqual(beyond.total, 3)

	def test_empty_result(self):
		page = list_rides(RideQuery(requester_id=999999))

		self.assertEqual(page.items, [])
		self.assertEqual(page.total, 0)
		self.assertEqual(page.pages, 0)

	def test_criteria_validation(self):
		with self.assertRaises(ValidationError):
			RideQuery(page=0)
		with self.assertRaises(ValidationError):
			RideQuery(page_size=100000)
		with self.assertRaises(ValidationError):
			RideQuery(ordering=RideOrdering.NEAREST)


class CurrentRideTests(TestCase):
	def test_current_ride_for_each_side(self):
		requester = make_requester()
		provider = make_provider()
		make_ride(requester, status=RideStatus.CANCELLED)
		self.assertIsNone(get_current_requester_ride(requester))

		ride = make_ride(requester)
		self.assertEqual(get_current_requester_ride(requester).id, ride.id)
		self.assertIsNone(get_current_provider_ride(provider))

		bid = make_proposal(ride, provider)
		accept_proposal(requester, ride.id, bid.id)

		self.assertEqual(get_current_provider_ride(provider).id, ride.id)
		self.assertEqual(get_current_requester_ride(requester).id, ride.id)
