"""
Core ride operations: creating, reading and listing rides.

This module contains the entity-store side of the ride services, kept apart
from the views layer for testability and reuse. Status changes live in
`status_transitions`, bidding in `proposal_ledger` and the assignment of a
provider in `acceptance`.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any

from django.db import IntegrityError, transaction

from accounts.models import ActorRole
from common.utils import is_valid_coordinate
from rides.models import (
    ACTIVE_RIDE_STATUSES,
    PaymentMethod,
    Ride,
    RideStatus,
    ServiceType,
    Urgency,
)
from .exceptions import (
    ActiveRideExistsError,
    ForbiddenError,
    RideNotFoundError,
    ValidationError,
)
from .queries import RidePage, RideQuery, apply_query

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result object for ride operations."""
    success: bool
    data: Any = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


def role_of(user) -> ActorRole:
    """Superusers act as admins whatever their stored role."""
    if user.is_superuser:
        return ActorRole.ADMIN
    return ActorRole(user.role)


# ===================== Requester Operations =====================

def check_active_ride(user) -> Optional[Ride]:
    """Check if user has an active ride."""
    return Ride.objects.filter(
        requester=user,
        status__in=ACTIVE_RIDE_STATUSES,
    ).first()


def _validate_choice(value, choices, field_name):
    if value not in choices.values:
        raise ValidationError(f"Invalid {field_name}: {value!r}")


def positive_price(value, field_name="price") -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return amount


@transaction.atomic
def create_ride_request(
    requester,
    service_type: str,
    pickup_latitude,
    pickup_longitude,
    pickup_address: str = "",
    destination_latitude=None,
    destination_longitude=None,
    destination_address: str = "",
    description: str = "",
    urgency: str = Urgency.NORMAL,
    vehicle_info: str = "",
    estimated_price: Optional[Decimal] = None,
    payment_method: Optional[str] = None,
) -> ServiceResult:
    """
    Create a new PENDING ride for the requester.

    Args:
        requester: User model instance (requester role)
        service_type: One of ServiceType
        pickup_latitude: Pickup location latitude
        pickup_longitude: Pickup location longitude
        pickup_address: Human-readable pickup address
        destination_latitude: Optional destination latitude
        destination_longitude: Optional destination longitude
        destination_address: Human-readable destination address
        description: Free-text description of the problem
        urgency: One of Urgency
        vehicle_info: Free-text vehicle description
        estimated_price: Optional price hint shown to providers
        payment_method: Optional PaymentMethod

    Returns:
        ServiceResult with the created ride

    Raises:
        ForbiddenError: If the user is not a requester
        ValidationError: On malformed coordinates or unknown choices
        ActiveRideExistsError: If requester already has an active ride
    """
    if role_of(requester) != ActorRole.REQUESTER:
        raise ForbiddenError("Only requesters can create ride requests")

    _validate_choice(service_type, ServiceType, "service_type")
    _validate_choice(urgency, Urgency, "urgency")
    if payment_method is not None:
        _validate_choice(payment_method, PaymentMethod, "payment_method")

    if not is_valid_coordinate(pickup_latitude, pickup_longitude):
        raise ValidationError("Invalid pickup coordinates")

    has_destination = destination_latitude is not None or destination_longitude is not None
    if has_destination and not is_valid_coordinate(destination_latitude, destination_longitude):
        raise ValidationError("Invalid destination coordinates")

    if estimated_price is not None:
        estimated_price = positive_price(estimated_price, "estimated_price")

    # Pre-check gives a clean error; the partial unique index settles the race
    if check_active_ride(requester):
        raise ActiveRideExistsError("You already have an active ride request")

    try:
        with transaction.atomic():
            ride = Ride.objects.create(
                requester=requester,
                service_type=service_type,
                description=description,
                vehicle_info=vehicle_info,
                urgency=urgency,
                pickup_latitude=pickup_latitude,
                pickup_longitude=pickup_longitude,
                pickup_address=pickup_address,
                destination_latitude=destination_latitude,
                destination_longitude=destination_longitude,
                destination_address=destination_address,
                estimated_price=estimated_price,
                payment_method=payment_method,
                status=RideStatus.PENDING,
            )
    except IntegrityError as exc:
        raise ActiveRideExistsError("You already have an active ride request") from exc

    logger.info("Ride %s created by requester %s (%s)", ride.id, requester.id, service_type)

    return ServiceResult(
        success=True,
        data=ride,
        message="Ride request created. Waiting for proposals.",
    )


def get_ride(ride_id: int, actor=None) -> Ride:
    """
    Fetch a ride, optionally checking that `actor` may see it.

    Requesters see their own rides, providers see rides bound to them plus
    PENDING rides open for bids, admins see everything.
    """
    try:
        ride = Ride.objects.select_related("requester", "provider").get(id=ride_id)
    except Ride.DoesNotExist:
        raise RideNotFoundError("Ride not found")

    if actor is None:
        return ride

    role = role_of(actor)
    if role == ActorRole.ADMIN:
        return ride
    if role == ActorRole.REQUESTER and ride.requester_id == actor.id:
        return ride
    if role == ActorRole.PROVIDER and (
        ride.provider_id == actor.id
        or (ride.status == RideStatus.PENDING and ride.provider_id is None)
    ):
        return ride

    raise ForbiddenError("You do not have access to this ride")


def list_rides(criteria: RideQuery) -> RidePage:
    """Return one page of rides matching `criteria`."""
    base = Ride.objects.select_related("requester", "provider")
    return apply_query(base, criteria)


def get_current_requester_ride(requester) -> Optional[Ride]:
    """Get requester's current active ride."""
    return Ride.objects.filter(
        requester=requester,
        status__in=ACTIVE_RIDE_STATUSES,
    ).select_related("provider__provider_profile").first()


def get_current_provider_ride(provider) -> Optional[Ride]:
    """Get provider's current assigned ride."""
    return Ride.objects.filter(
        provider=provider,
        status__in=[RideStatus.ACCEPTED, RideStatus.IN_PROGRESS],
    ).select_related("requester").first()
