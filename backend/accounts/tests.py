from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import ActorRole, User
from providers.models import ProviderProfile


class RegisterTests(TestCase):
	def setUp(self):
		self.client = APIClient()

	def test_register_requester(self):
		response = self.client.post('/api/auth/register/', {
			'username': 'maria',
			'email': 'maria@example.com',
			'password': 'password123',
			'role': 'requester',
			'phone_number': '11999990000',
		}, format='json')

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['data']['user']['role'], ActorRole.REQUESTER)
		self.assertIn('access', response.data['data']['tokens'])
		self.assertFalse(ProviderProfile.objects.exists())

	def test_provider_needs_vehicle_plate(self):
		response = self.client.post('/api/auth/register/', {
			'username': 'joao',
			'password': 'password123',
			'role': 'provider',
		}, format='json')

		self.assertEqual(response.status_code, 400)
		self.assertIn('vehicle_plate', response.data)
		self.assertFalse(User.objects.filter(username='joao').exists())

	def test_register_provider_creates_profile(self):
		response = self.client.post('/api/auth/register/', {
			'username': 'joao',
			'password': 'password123',
			'role': 'provider',
			'vehicle_plate': 'ABC1D23',
			'vehicle_type': 'Flatbed',
			'service_types': ['LIGHT_TOW', 'BATTERY'],
		}, format='json')

		self.assertEqual(response.status_code, 201)
		profile = ProviderProfile.objects.get(user__username='joao')
		self.assertEqual(profile.vehicle_plate, 'ABC1D23')
		self.assertEqual(profile.service_types, ['LIGHT_TOW', 'BATTERY'])
		self.assertFalse(profile.is_available)

	def test_admin_role_cannot_be_self_assigned(self):
		response = self.client.post('/api/auth/register/', {
			'username': 'sneaky',
			'password': 'password123',
			'role': 'admin',
		}, format='json')

		self.assertEqual(response.status_code, 400)

	def test_duplicate_email(self):
		User.objects.create_user(username='first', email='same@example.com', password='password123')

		response = self.client.post('/api/auth/register/', {
			'username': 'second',
			'email': 'same@example.com',
			'password': 'password123',
			'role': 'requester',
		}, format='json')

		self.assertEqual(response.status_code, 400)


class TokenTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		User.objects.create_user(username='maria', password='password123', role=ActorRole.REQUESTER)

	def _login(self, password='password123'):
		return self.client.post('/api/auth/login/', {'username': 'maria', 'password': password}, format='json')

	def test_login(self):
		response = self._login()

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['data']['user']['username'], 'maria')
		self.assertIn('refresh', response.data['data']['tokens'])

	def test_login_with_wrong_password(self):
		self.assertEqual(self._login('nope').status_code, 400)

	def test_access_token_opens_protected_endpoints(self):
		access = self._login().data['data']['tokens']['access']

		self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
		response = self.client.get('/api/rides/')

		self.assertEqual(response.status_code, 200)

	def test_protected_endpoints_need_a_token(self):
		self.assertEqual(self.client.get('/api/rides/').status_code, 401)

	def test_refresh(self):
		refresh = self._login().data['data']['tokens']['refresh']

		response = self.client.post('/api/auth/refresh/', {'refresh': refresh}, format='json')

		self.assertEqual(response.status_code, 200)
		self.assertIn('access', response.data['data'])

	def test_refresh_requires_a_valid_token(self):
		self.assertEqual(self.client.post('/api/auth/refresh/', {}, format='json').status_code, 400)
		self.assertEqual(
			self.client.post('/api/auth/refresh/', {'refresh': 'garbage'}, format='json').status_code,
			401,
		)
