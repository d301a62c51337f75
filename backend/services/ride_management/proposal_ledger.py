"""
Proposal ledger: provider bids on PENDING rides.

A provider holds at most one proposal per ride. Proposals expire
`PROPOSAL_TTL_SECONDS` after submission; acceptance refuses anything past
`expires_at` and the periodic sweep marks such rows EXPIRED.
"""

import logging
from datetime import timedelta
from typing import List

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.models import ActorRole
from providers.models import ProviderProfile
from realtime.notifications import notify_on_commit, notify_requester_event
from rides.models import Proposal, ProposalStatus, Ride, RideStatus
from .exceptions import (
    DuplicateProposalError,
    ForbiddenError,
    ProviderNotAvailableError,
    RideNotAvailableError,
    RideNotFoundError,
    ValidationError,
)
from .ride_lifecycle import ServiceResult, get_ride, positive_price, role_of

logger = logging.getLogger(__name__)


def _positive_minutes(estimated_time) -> int:
    try:
        value = int(estimated_time)
    except (TypeError, ValueError):
        raise ValidationError("estimated_time must be an integer")
    if value <= 0:
        raise ValidationError("estimated_time must be positive")
    return value


@transaction.atomic
def submit_proposal(
    provider,
    ride_id: int,
    price,
    estimated_time,
    message: str = "",
) -> ServiceResult:
    """
    Place a provider's bid on a PENDING ride.

    Args:
        provider: User model instance (provider role)
        ride_id: ID of the ride
        price: Offered price, > 0
        estimated_time: Minutes to reach the pickup, > 0
        message: Optional note for the requester

    Returns:
        ServiceResult with the created proposal

    Raises:
        RideNotFoundError: If the ride does not exist
        ForbiddenError: If the actor is not an approved provider
        ProviderNotAvailableError: If the provider is not available
        RideNotAvailableError: If the ride is no longer open for bids
        ValidationError: On non-positive price or estimated time
        DuplicateProposalError: If the provider already bid on this ride
    """
    if role_of(provider) != ActorRole.PROVIDER:
        raise ForbiddenError("Only providers can submit proposals")

    price = positive_price(price)
    estimated_time = _positive_minutes(estimated_time)

    # Lock the ride so submission serialises with acceptance
    try:
        ride = Ride.objects.select_for_update().get(id=ride_id)
    except Ride.DoesNotExist:
        raise RideNotFoundError("Ride not found")

    try:
        profile = provider.provider_profile
    except ProviderProfile.DoesNotExist:
        raise ForbiddenError("Provider profile not found")

    if not profile.is_approved:
        raise ForbiddenError("Provider is not approved yet")
    if not profile.is_available:
        raise ProviderNotAvailableError("You are not available for new rides")

    if ride.status != RideStatus.PENDING or ride.provider_id is not None:
        raise RideNotAvailableError("Ride is no longer accepting proposals")

    if Proposal.objects.filter(ride=ride, provider=provider).exists():
        raise DuplicateProposalError("You already sent a proposal for this ride")

    now = timezone.now()
    try:
        with transaction.atomic():
            proposal = Proposal.objects.create(
                ride=ride,
                provider=provider,
                price=price,
                estimated_time=estimated_time,
                message=message,
                status=ProposalStatus.PENDING,
                expires_at=now + timedelta(seconds=settings.PROPOSAL_TTL_SECONDS),
            )
    except IntegrityError as exc:
        raise DuplicateProposalError("You already sent a proposal for this ride") from exc

    logger.info(
        "Proposal %s on ride %s by provider %s (price=%s, eta=%smin)",
        proposal.id, ride.id, provider.id, price, estimated_time,
    )

    from rides.serializers import ProposalSerializer

    notify_on_commit(
        notify_requester_event,
        "new_proposal",
        ride,
        "You received a new proposal.",
        {"proposal": ProposalSerializer(proposal).data},
    )

    return ServiceResult(
        success=True,
        data=proposal,
        message="Proposal sent",
    )


def list_proposals(ride_id: int, actor=None) -> List[Proposal]:
    """
    Proposals for a ride, cheapest first.

    The requester who owns the ride and admins see every proposal; a
    provider sees only its own.
    """
    ride = get_ride(ride_id)
    qs = Proposal.objects.filter(ride=ride).select_related(
        "provider", "provider__provider_profile"
    ).order_by("price", "created_at")

    if actor is None:
        return list(qs)

    role = role_of(actor)
    if role == ActorRole.ADMIN:
        return list(qs)
    if role == ActorRole.REQUESTER:
        if ride.requester_id != actor.id:
            raise ForbiddenError("You do not have access to this ride")
        return list(qs)
    return list(qs.filter(provider=actor))


def expire_stale_proposals(now=None) -> int:
    """Mark PENDING proposals past their `expires_at` as EXPIRED."""
    now = now or timezone.now()
    expired = Proposal.objects.filter(
        status=ProposalStatus.PENDING,
        expires_at__lte=now,
    ).update(status=ProposalStatus.EXPIRED, expired_at=now)

    if expired:
        logger.info("Expired %d stale proposals", expired)
    return expired
