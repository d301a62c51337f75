"""
Typed query criteria for listing rides.

A RideQuery is an explicit set of optional filters; unset fields do not
constrain the result. Distance filtering is a plain Haversine pass over the
rows matched by the database filters.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import Q, QuerySet

from common.utils import calculate_distance
from rides.models import Ride
from .exceptions import ValidationError


class RideOrdering(enum.Enum):
    NEWEST = "-created_at"
    OLDEST = "created_at"
    NEAREST = "distance"


@dataclass(frozen=True)
class GeoFilter:
    latitude: float
    longitude: float
    radius_km: float


@dataclass
class RideQuery:
    requester_id: Optional[int] = None
    provider_id: Optional[int] = None
    statuses: Sequence[str] = field(default_factory=tuple)
    service_types: Sequence[str] = field(default_factory=tuple)
    unassigned_only: bool = False
    near: Optional[GeoFilter] = None
    ordering: RideOrdering = RideOrdering.NEWEST
    page: int = 1
    page_size: Optional[int] = None

    def __post_init__(self):
        if self.page < 1:
            raise ValidationError("page must be >= 1")
        if self.page_size is None:
            self.page_size = settings.RIDES_PAGE_SIZE
        if not 1 <= self.page_size <= settings.RIDES_MAX_PAGE_SIZE:
            raise ValidationError(
                f"page_size must be between 1 and {settings.RIDES_MAX_PAGE_SIZE}"
            )
        if self.ordering is RideOrdering.NEAREST and self.near is None:
            raise ValidationError("NEAREST ordering requires a location filter")

    def to_q(self) -> Q:
        q = Q()
        if self.requester_id is not None:
            q &= Q(requester_id=self.requester_id)
        if self.provider_id is not None:
            q &= Q(provider_id=self.provider_id)
        if self.statuses:
            q &= Q(status__in=list(self.statuses))
        if self.service_types:
            q &= Q(service_type__in=list(self.service_types))
        if self.unassigned_only:
            q &= Q(provider__isnull=True)
        return q


@dataclass
class RidePage:
    items: List[Ride]
    page: int
    page_size: int
    total: int
    pages: int


def filter_by_distance(rides, near: GeoFilter) -> List[Tuple[float, Ride]]:
    """Keep rides whose pickup lies within `near.radius_km`, nearest first."""
    radius_m = near.radius_km * 1000
    with_distance = []
    for ride in rides:
        dist = calculate_distance(
            near.latitude, near.longitude,
            ride.pickup_latitude, ride.pickup_longitude,
        )
        if dist <= radius_m:
            with_distance.append((dist, ride))
    with_distance.sort(key=lambda item: item[0])
    return with_distance


def apply_query(base: QuerySet, criteria: RideQuery) -> RidePage:
    qs = base.filter(criteria.to_q())

    if criteria.near is not None:
        rows = [ride for _, ride in filter_by_distance(qs, criteria.near)]
        if criteria.ordering is not RideOrdering.NEAREST:
            rows.sort(key=lambda r: r.created_at, reverse=criteria.ordering is RideOrdering.NEWEST)
        source = rows
    else:
        source = qs.order_by(criteria.ordering.value, "-id")

    paginator = Paginator(source, criteria.page_size)
    total = paginator.count
    pages = paginator.num_pages if total else 0
    if total and criteria.page > paginator.num_pages:
        items = []
    else:
        items = list(paginator.page(criteria.page).object_list) if total else []

    return RidePage(
        items=items,
        page=criteria.page,
        page_size=criteria.page_size,
        total=total,
        pages=pages,
    )
