from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from accounts.models import ActorRole, User
from providers.models import ProviderProfile
from rides.models import Proposal, ProposalStatus, Ride, RideStatus, ServiceType


def make_requester(username="requester", **extra):
	return User.objects.create_user(
		username=username,
		password="pass1234",
		role=ActorRole.REQUESTER,
		**extra
	)


def make_provider(username="provider", available=True, approved=True, service_types=None, **profile):
	user = User.objects.create_user(
		username=username,
		password="pass1234",
		role=ActorRole.PROVIDER,
	)
	ProviderProfile.objects.create(
		user=user,
		vehicle_plate=f"PLT-{username}"[:20],
		is_available=available,
		is_approved=approved,
		service_types=service_types or [],
		**profile
	)
	return user


def make_admin(username="admin"):
	return User.objects.create_user(username=username, password="pass1234", role=ActorRole.ADMIN)


def make_ride(requester, status=RideStatus.PENDING, provider=None, **fields):
	defaults = {
		"service_type": ServiceType.LIGHT_TOW,
		"pickup_latitude": Decimal("-23.550520"),
		"pickup_longitude": Decimal("-46.633308"),
		"pickup_address": "Av. Paulista, 1000",
	}
	defaults.update(fields)
	return Ride.objects.create(requester=requester, provider=provider, status=status, **defaults)


def make_proposal(ride, provider, price="120.00", estimated_time=20, expires_in=900, **fields):
	return Proposal.objects.create(
		ride=ride,
		provider=provider,
		price=Decimal(price),
		estimated_time=estimated_time,
		status=fields.pop("status", ProposalStatus.PENDING),
		expires_at=timezone.now() + timedelta(seconds=expires_in),
		**fields
	)
