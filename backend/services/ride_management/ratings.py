"""Post-completion ratings between requester and provider."""

import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Avg

from accounts.models import ActorRole
from providers.models import ProviderProfile
from rides.models import Rating, Ride, RideStatus
from .exceptions import (
    DuplicateRatingError,
    ForbiddenError,
    InvalidStateError,
    RideNotFoundError,
    ValidationError,
)
from .ride_lifecycle import ServiceResult

logger = logging.getLogger(__name__)

User = get_user_model()

MIN_SCORE = 1
MAX_SCORE = 5


def _refresh_average(user_id: int, role: str) -> float:
    average = Rating.objects.filter(evaluated_id=user_id).aggregate(avg=Avg("score"))["avg"] or 0
    average = round(float(average), 2)
    User.objects.filter(id=user_id).update(rating=average)
    if role == ActorRole.PROVIDER:
        ProviderProfile.objects.filter(user_id=user_id).update(rating=average)
    return average


@transaction.atomic
def rate_ride(evaluator, ride_id: int, score, comment: str = "") -> ServiceResult:
    """
    Rate the other party of a COMPLETED ride.

    The requester rates the provider and the provider rates the requester,
    once each. The evaluated user's average rating is recomputed.
    """
    try:
        score = int(score)
    except (TypeError, ValueError):
        raise ValidationError("score must be an integer")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(f"score must be between {MIN_SCORE} and {MAX_SCORE}")

    try:
        ride = Ride.objects.get(id=ride_id)
    except Ride.DoesNotExist:
        raise RideNotFoundError("Ride not found")

    if evaluator.id == ride.requester_id:
        evaluator_role, evaluated_id, evaluated_role = (
            ActorRole.REQUESTER, ride.provider_id, ActorRole.PROVIDER,
        )
    elif ride.provider_id is not None and evaluator.id == ride.provider_id:
        evaluator_role, evaluated_id, evaluated_role = (
            ActorRole.PROVIDER, ride.requester_id, ActorRole.REQUESTER,
        )
    else:
        raise ForbiddenError("You are not part of this ride")

    if ride.status != RideStatus.COMPLETED:
        raise InvalidStateError("Only completed rides can be rated")

    if Rating.objects.filter(ride=ride, evaluator=evaluator).exists():
        raise DuplicateRatingError("You already rated this ride")

    try:
        with transaction.atomic():
            rating = Rating.objects.create(
                ride=ride,
                evaluator=evaluator,
                evaluator_role=evaluator_role,
                evaluated_id=evaluated_id,
                evaluated_role=evaluated_role,
                score=score,
                comment=comment,
            )
    except IntegrityError as exc:
        raise DuplicateRatingError("You already rated this ride") from exc

    average = _refresh_average(evaluated_id, evaluated_role)
    logger.info("Ride %s rated %s by %s %s", ride.id, score, evaluator_role, evaluator.id)

    return ServiceResult(
        success=True,
        data=rating,
        message="Thanks for your rating",
        extra={"evaluated_rating": average},
    )
