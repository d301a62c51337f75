"""Celery tasks for ride-related background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def expire_stale_proposals_task():
    """
    Periodic sweep that marks PENDING proposals past `expires_at` as EXPIRED.

    Scheduled by Celery beat (see CELERY_BEAT_SCHEDULE). Acceptance already
    refuses expired proposals on its own; the sweep keeps stored statuses
    in line with the clock.
    """
    from services.ride_management import expire_stale_proposals

    expired = expire_stale_proposals()
    logger.info("Proposal sweep finished: %d expired", expired)
    return expired
