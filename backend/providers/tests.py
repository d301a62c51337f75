from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from providers.models import ProviderProfile
from providers.views import AvailableRidesView, ProviderAvailabilityView, ProviderRideHistoryView
from rides.models import RideStatus, ServiceType
from rides.tests.helpers import make_proposal, make_provider, make_requester, make_ride
from services.ride_management import accept_proposal


class ProviderAvailabilityTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.view = ProviderAvailabilityView.as_view()
		self.provider = make_provider(available=False)

	def _put(self, user, data):
		request = self.factory.put('/api/providers/availability/', data, format='json')
		force_authenticate(request, user=user)
		return self.view(request)

	def test_go_available_with_position(self):
		response = self._put(self.provider, {'is_available': True, 'latitude': -23.5, 'longitude': -46.6})

		self.assertEqual(response.status_code, 200)
		profile = ProviderProfile.objects.get(user=self.provider)
		self.assertTrue(profile.is_available)
		self.assertEqual(profile.current_latitude, Decimal('-23.500000'))

	def test_unapproved_provider_cannot_go_available(self):
		rookie = make_provider('rookie', available=False, approved=False)

		response = self._put(rookie, {'is_available': True})

		self.assertEqual(response.status_code, 403)
		self.assertFalse(ProviderProfile.objects.get(user=rookie).is_available)

	def test_cannot_free_itself_during_a_ride(self):
		ProviderProfile.objects.filter(user=self.provider).update(is_available=True)
		requester = make_requester()
		ride = make_ride(requester)
		accept_proposal(requester, ride.id, make_proposal(ride, self.provider).id)

		response = self._put(self.provider, {'is_available': True})

		self.assertEqual(response.status_code, 400)
		self.assertFalse(ProviderProfile.objects.get(user=self.provider).is_available)

	def test_going_offline_is_always_allowed(self):
		ProviderProfile.objects.filter(user=self.provider).update(is_available=True)

		response = self._put(self.provider, {'is_available': False})

		self.assertEqual(response.status_code, 200)
		self.assertFalse(ProviderProfile.objects.get(user=self.provider).is_available)

	def test_requesters_are_refused(self):
		response = self._put(make_requester(), {'is_available': True})

		self.assertEqual(response.status_code, 403)

	def test_half_a_position_is_rejected(self):
		response = self._put(self.provider, {'is_available': False, 'latitude': 10})

		self.assertEqual(response.status_code, 400)


class AvailableRidesTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.view = AvailableRidesView.as_view()
		self.provider = make_provider(
			service_types=[ServiceType.LIGHT_TOW, ServiceType.FUEL],
			service_radius_km=15,
		)

		self.tow = make_ride(make_requester('a'), service_type=ServiceType.LIGHT_TOW)
		self.fuel = make_ride(
			make_requester('b'), service_type=ServiceType.FUEL,
			pickup_latitude=Decimal('-23.589000'), pickup_longitude=Decimal('-46.634000'),
		)
		self.battery = make_ride(make_requester('c'), service_type=ServiceType.BATTERY)
		self.far_tow = make_ride(
			make_requester('d'), service_type=ServiceType.LIGHT_TOW,
			pickup_latitude=Decimal('-22.906847'), pickup_longitude=Decimal('-43.172897'),
		)
		self.done = make_ride(make_requester('e'), status=RideStatus.COMPLETED)

	def _get(self, user, params=None):
		request = self.factory.get('/api/providers/available-rides/', params or {})
		force_authenticate(request, user=user)
		return self.view(request)

	def test_lists_open_rides_for_offered_services_oldest_first(self):
		response = self._get(self.provider)

		self.assertEqual(response.status_code, 200)
		ids = [r['id'] for r in response.data['data']]
		self.assertEqual(ids, [self.tow.id, self.fuel.id, self.far_tow.id])
		self.assertIsNone(response.data['data'][0]['distance_km'])

	def test_radius_filter(self):
		response = self._get(self.provider, {'latitude': -23.550520, 'longitude': -46.633308})

		ids = [r['id'] for r in response.data['data']]
		self.assertEqual(ids, [self.tow.id, self.fuel.id])
		self.assertEqual(response.data['data'][0]['distance_km'], 0.0)

	def test_explicit_radius_and_service_type(self):
		response = self._get(self.provider, {
			'latitude': -23.550520, 'longitude': -46.633308,
			'radius_km': 1, 'service_type': 'LIGHT_TOW',
		})

		self.assertEqual([r['id'] for r in response.data['data']], [self.tow.id])

	@override_settings(AVAILABLE_RIDES_LIMIT=1)
	def test_limit(self):
		response = self._get(self.provider)

		self.assertEqual(response.data['count'], 1)

	def test_offline_provider_gets_nothing(self):
		ProviderProfile.objects.filter(user=self.provider).update(is_available=False)

		response = self._get(User.objects.get(pk=self.provider.pk))

		self.assertEqual(response.data['data'], [])

	def test_assigned_rides_disappear(self):
		bid = make_proposal(self.tow, make_provider('fast'))
		accept_proposal(self.tow.requester, self.tow.id, bid.id)

		ids = [r['id'] for r in self._get(self.provider).data['data']]

		self.assertNotIn(self.tow.id, ids)


class ProviderRideHistoryTests(TestCase):
	def test_history_lists_only_assigned_rides(self):
		factory = APIRequestFactory()
		provider = make_provider()
		requester = make_requester()
		mine = make_ride(requester, status=RideStatus.COMPLETED, provider=provider)
		make_ride(make_requester('someone'), status=RideStatus.COMPLETED, provider=make_provider('other_provider'))

		request = factory.get('/api/providers/rides/', {'status': 'completed'})
		force_authenticate(request, user=provider)
		response = ProviderRideHistoryView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual([r['id'] for r in response.data['data']['results']], [mine.id])
