"""
Ride status transition engine.

Every status change other than PENDING -> ACCEPTED goes through
`transition_ride_status`. PENDING -> ACCEPTED belongs to proposal acceptance
and is absent from the table below, so no role may request it here.
"""

import logging
from typing import FrozenSet

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import ActorRole
from providers.models import ProviderProfile
from realtime.notifications import (
    notify_on_commit,
    notify_provider_event,
    notify_status_change,
)
from rides.models import Proposal, ProposalStatus, Ride, RideStatus
from .exceptions import (
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    RideNotFoundError,
    ValidationError,
)
from .ride_lifecycle import ServiceResult, role_of

logger = logging.getLogger(__name__)

User = get_user_model()

_NONE: FrozenSet[str] = frozenset()

TRANSITIONS = {
    RideStatus.PENDING: {
        ActorRole.REQUESTER: frozenset({RideStatus.CANCELLED}),
        ActorRole.PROVIDER: _NONE,
        ActorRole.ADMIN: frozenset({RideStatus.CANCELLED}),
    },
    RideStatus.ACCEPTED: {
        ActorRole.REQUESTER: frozenset({RideStatus.CANCELLED}),
        ActorRole.PROVIDER: frozenset({RideStatus.IN_PROGRESS, RideStatus.CANCELLED}),
        ActorRole.ADMIN: frozenset({RideStatus.IN_PROGRESS, RideStatus.CANCELLED}),
    },
    RideStatus.IN_PROGRESS: {
        ActorRole.REQUESTER: frozenset({RideStatus.CANCELLED}),
        ActorRole.PROVIDER: frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED}),
        ActorRole.ADMIN: frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED}),
    },
    # Terminal
    RideStatus.COMPLETED: {role: _NONE for role in ActorRole},
    RideStatus.CANCELLED: {role: _NONE for role in ActorRole},
}


def allowed_transitions(status: str, role: str) -> FrozenSet[str]:
    """Target statuses `role` may move a ride to from `status`."""
    return TRANSITIONS[RideStatus(status)][ActorRole(role)]


def _reachable_by_anyone(status: str, target: str) -> bool:
    return any(target in targets for targets in TRANSITIONS[RideStatus(status)].values())


def _resolve_role(actor, actor_role) -> ActorRole:
    own_role = role_of(actor)
    if actor_role is None:
        return own_role
    try:
        requested = ActorRole(actor_role)
    except ValueError:
        raise ValidationError(f"Invalid actor role: {actor_role!r}")
    if requested != own_role and own_role != ActorRole.ADMIN:
        raise ForbiddenError("You cannot act with that role")
    return requested


def _is_bound(ride: Ride, actor, role: ActorRole) -> bool:
    if role == ActorRole.ADMIN:
        return True
    if role == ActorRole.REQUESTER:
        return ride.requester_id == actor.id
    return ride.provider_id is not None and ride.provider_id == actor.id


@transaction.atomic
def transition_ride_status(
    actor,
    ride_id: int,
    target_status: str,
    actor_role: str = None,
    reason: str = "",
) -> ServiceResult:
    """
    Move a ride to `target_status` on behalf of `actor`.

    Args:
        actor: User requesting the change
        ride_id: ID of the ride
        target_status: One of RideStatus
        actor_role: Role to act as; defaults to the actor's own role
        reason: Cancellation reason (CANCELLED only)

    Returns:
        ServiceResult with the updated ride

    Raises:
        RideNotFoundError: If the ride does not exist
        ValidationError: If target_status is not a known status
        InvalidTransitionError: If no role may make this move
        ForbiddenError: If this actor may not make this move
        InvalidStateError: If the ride changed status concurrently
    """
    if target_status not in RideStatus.values:
        raise ValidationError(f"Invalid status: {target_status!r}")
    target = RideStatus(target_status)
    role = _resolve_role(actor, actor_role)

    try:
        ride = Ride.objects.select_for_update().get(id=ride_id)
    except Ride.DoesNotExist:
        raise RideNotFoundError("Ride not found")

    current = ride.status

    if not _reachable_by_anyone(current, target):
        raise InvalidTransitionError(f"Cannot move ride from {current} to {target}")
    if target not in allowed_transitions(current, role):
        raise ForbiddenError(f"A {role.label.lower()} cannot move ride from {current} to {target}")
    if not _is_bound(ride, actor, role):
        raise ForbiddenError("You are not part of this ride")

    now = timezone.now()
    fields = {"status": target, "updated_at": now}
    if target == RideStatus.IN_PROGRESS:
        fields["started_at"] = now
    elif target == RideStatus.COMPLETED:
        fields["completed_at"] = now
        if ride.final_price is None:
            fields["final_price"] = ride.agreed_price
    elif target == RideStatus.CANCELLED:
        fields["cancelled_at"] = now
        fields["cancelled_by"] = role
        fields["cancellation_reason"] = reason

    updated = Ride.objects.filter(id=ride.id, status=current).update(**fields)
    if updated == 0:
        raise InvalidStateError("Ride status changed, please retry with the latest state")

    if target in (RideStatus.COMPLETED, RideStatus.CANCELLED) and ride.provider_id:
        ProviderProfile.objects.filter(user_id=ride.provider_id).update(is_available=True)

    if target == RideStatus.COMPLETED:
        User.objects.filter(
            id__in=[ride.requester_id, ride.provider_id]
        ).update(completed_rides=F("completed_rides") + 1)

    rejected_providers = []
    if target == RideStatus.CANCELLED and current == RideStatus.PENDING:
        open_proposals = Proposal.objects.filter(ride_id=ride.id, status=ProposalStatus.PENDING)
        rejected_providers = list(open_proposals.values_list("provider_id", flat=True))
        open_proposals.update(status=ProposalStatus.REJECTED, rejected_at=now)

    ride.refresh_from_db()
    logger.info("Ride %s: %s -> %s by %s %s", ride.id, current, target, role, actor.id)

    notify_on_commit(notify_status_change, ride, current)
    for provider_id in rejected_providers:
        notify_on_commit(
            notify_provider_event,
            "proposal_rejected",
            ride,
            provider_id,
            "The client cancelled the request.",
        )

    return ServiceResult(
        success=True,
        data=ride,
        message=f"Ride {target.label.lower()}",
        extra={"previous_status": current},
    )
