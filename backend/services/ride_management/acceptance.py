"""
Proposal acceptance: binds exactly one provider to a PENDING ride.

Every write is a conditional update whose row count is checked. A zero
count means a concurrent transaction got there first; raising inside the
atomic block rolls back whatever this call already wrote.
"""

import logging

from django.db import transaction
from django.utils import timezone

from providers.models import ProviderProfile
from realtime.notifications import notify_on_commit, notify_proposal_resolution
from rides.models import Proposal, ProposalStatus, Ride, RideStatus
from .exceptions import (
    ForbiddenError,
    ProposalExpiredError,
    ProposalNotFoundError,
    ProviderNotAvailableError,
    RideNotAvailableError,
    RideNotFoundError,
)
from .ride_lifecycle import ServiceResult

logger = logging.getLogger(__name__)


@transaction.atomic
def accept_proposal(requester, ride_id: int, proposal_id: int) -> ServiceResult:
    """
    Accept one proposal for the requester's ride.

    Args:
        requester: User model instance owning the ride
        ride_id: ID of the ride
        proposal_id: ID of a proposal on that ride

    Returns:
        ServiceResult with the ACCEPTED ride

    Raises:
        RideNotFoundError / ProposalNotFoundError: Unknown ride or proposal
        ForbiddenError: If the requester does not own the ride
        RideNotAvailableError: If the ride is no longer PENDING
        ProposalExpiredError: If the proposal expired or was resolved
        ProviderNotAvailableError: If the provider is busy or offline
    """
    try:
        ride = Ride.objects.select_for_update().get(id=ride_id)
    except Ride.DoesNotExist:
        raise RideNotFoundError("Ride not found")

    try:
        proposal = Proposal.objects.select_for_update().get(id=proposal_id, ride_id=ride.id)
    except Proposal.DoesNotExist:
        raise ProposalNotFoundError("Proposal not found for this ride")

    if ride.requester_id != requester.id:
        raise ForbiddenError("Only the ride owner can accept proposals")

    if ride.status != RideStatus.PENDING or ride.provider_id is not None:
        raise RideNotAvailableError("Ride no longer available")

    now = timezone.now()
    if proposal.status != ProposalStatus.PENDING or proposal.expires_at <= now:
        raise ProposalExpiredError("Proposal expired or no longer valid")

    profile = ProviderProfile.objects.filter(user_id=proposal.provider_id).first()
    if profile is None or not profile.is_available:
        raise ProviderNotAvailableError("Provider is no longer available")

    # Bind the ride; only one acceptance can see PENDING with no provider
    bound = Ride.objects.filter(
        id=ride.id,
        status=RideStatus.PENDING,
        provider__isnull=True,
    ).update(
        provider_id=proposal.provider_id,
        status=RideStatus.ACCEPTED,
        agreed_price=proposal.price,
        estimated_time=proposal.estimated_time,
        accepted_at=now,
        updated_at=now,
    )
    if bound == 0:
        raise RideNotAvailableError("Ride no longer available")

    # Claim the provider; a provider is held by at most one ride
    claimed = ProviderProfile.objects.filter(
        user_id=proposal.provider_id,
        is_available=True,
    ).update(is_available=False)
    if claimed == 0:
        raise ProviderNotAvailableError("Provider is no longer available")

    won = Proposal.objects.filter(
        id=proposal.id,
        status=ProposalStatus.PENDING,
        expires_at__gt=now,
    ).update(status=ProposalStatus.ACCEPTED, accepted_at=now)
    if won == 0:
        raise ProposalExpiredError("Proposal expired or no longer valid")

    losers = Proposal.objects.filter(
        ride_id=ride.id,
        status=ProposalStatus.PENDING,
    ).exclude(id=proposal.id)
    loser_ids = list(losers.values_list("provider_id", flat=True))
    losers.update(status=ProposalStatus.REJECTED, rejected_at=now)

    ride.refresh_from_db()
    logger.info(
        "Ride %s accepted: proposal %s, provider %s, price %s (%d rejected)",
        ride.id, proposal.id, proposal.provider_id, proposal.price, len(loser_ids),
    )

    notify_on_commit(notify_proposal_resolution, ride, proposal.provider_id, loser_ids)

    return ServiceResult(
        success=True,
        data=ride,
        message="Proposal accepted. The provider is on the way.",
        extra={"proposal_id": proposal.id, "rejected": len(loser_ids)},
    )
