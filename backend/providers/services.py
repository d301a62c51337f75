from django.conf import settings
from django.db import transaction
from django.utils import timezone

from providers.models import ProviderProfile
from rides.models import ACTIVE_RIDE_STATUSES, Ride, RideStatus
from services.ride_management import (
    ForbiddenError,
    GeoFilter,
    InvalidStateError,
)
from services.ride_management.queries import filter_by_distance


def get_profile(user) -> ProviderProfile:
    try:
        return user.provider_profile
    except ProviderProfile.DoesNotExist:
        raise ForbiddenError("Provider profile not found")


# PROVIDER AVAILABILITY
@transaction.atomic
def set_availability(profile: ProviderProfile, is_available: bool, lat=None, lon=None):
    """
    Toggle whether the provider takes new work, optionally moving its position.

    Going available needs an approved profile and no ride in progress;
    otherwise the flag could free a provider that acceptance already claimed.
    """
    profile = ProviderProfile.objects.select_for_update().get(pk=profile.pk)

    if is_available:
        if not profile.is_approved:
            raise ForbiddenError("Provider is not approved yet")
        busy = Ride.objects.filter(
            provider_id=profile.user_id,
            status__in=ACTIVE_RIDE_STATUSES,
        ).exists()
        if busy:
            raise InvalidStateError("Finish your current ride before going available")

    profile.is_available = is_available
    profile.last_seen = timezone.now()
    update_fields = ["is_available", "last_seen"]

    if lat is not None and lon is not None:
        profile.current_latitude = lat
        profile.current_longitude = lon
        update_fields += ["current_latitude", "current_longitude"]

    profile.save(update_fields=update_fields)
    return profile


# OPEN RIDES FEED
def find_available_rides(profile: ProviderProfile, lat=None, lon=None, radius_km=None, service_type=None):
    """
    PENDING rides nobody has been assigned to, oldest first.

    Only service types the provider offers are listed. When a position is
    given (or stored on the profile) rides farther than `radius_km` are left
    out. Returns (distance_m or None, ride) pairs.
    """
    rides = Ride.objects.filter(
        status=RideStatus.PENDING,
        provider__isnull=True,
    ).select_related("requester").order_by("created_at", "id")

    if profile.service_types:
        rides = rides.filter(service_type__in=profile.service_types)
    if service_type:
        rides = rides.filter(service_type=service_type)

    if lat is None or lon is None:
        lat, lon = profile.current_latitude, profile.current_longitude

    limit = settings.AVAILABLE_RIDES_LIMIT

    if lat is None or lon is None:
        return [(None, ride) for ride in rides[:limit]]

    near = GeoFilter(
        latitude=float(lat),
        longitude=float(lon),
        radius_km=radius_km or profile.service_radius_km or settings.DEFAULT_SEARCH_RADIUS_KM,
    )
    in_range = filter_by_distance(rides, near)
    in_range.sort(key=lambda item: (item[1].created_at, item[1].id))
    return in_range[:limit]
