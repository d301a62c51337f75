from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from accounts.models import ActorRole
from common.responses import error_response, service_error_response, success_response
from services import ride_management
from services.ride_management import (
    GeoFilter,
    RideManagementError,
    RideQuery,
    role_of,
)
from .serializers import (
    ProposalCreateSerializer,
    ProposalSerializer,
    RatingCreateSerializer,
    RatingSerializer,
    RideCreateSerializer,
    RideListQuerySerializer,
    RideSerializer,
    RideStatusUpdateSerializer,
)


def _page_payload(page, request):
    return {
        'results': RideSerializer(page.items, many=True, context={'request': request}).data,
        'page': page.page,
        'page_size': page.page_size,
        'total': page.total,
        'pages': page.pages,
    }


# ==================== Ride collection ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def rides_collection(request):
    """
    GET  - list rides visible to the caller (own rides for requesters and
           providers, everything for admins)
    POST - create a ride request (requesters only)
    """
    if request.method == 'POST':
        return _create_ride(request)
    return _list_rides(request)


def _create_ride(request):
    serializer = RideCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_management.create_ride_request(request.user, **serializer.validated_data)
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(
        RideSerializer(result.data, context={'request': request}).data,
        result.message,
        status.HTTP_201_CREATED,
    )


def _list_rides(request):
    params = RideListQuerySerializer(data=request.query_params)
    params.is_valid(raise_exception=True)
    data = params.validated_data

    near = None
    if 'latitude' in data:
        near = GeoFilter(
            latitude=data['latitude'],
            longitude=data['longitude'],
            radius_km=data.get('radius_km') or settings.DEFAULT_SEARCH_RADIUS_KM,
        )

    role = role_of(request.user)
    scope = {}
    if role == ActorRole.REQUESTER:
        scope['requester_id'] = request.user.id
    elif role == ActorRole.PROVIDER:
        scope['provider_id'] = request.user.id

    try:
        criteria = RideQuery(
            statuses=data['statuses'],
            service_types=data['service_types'],
            near=near,
            ordering=data['ordering'],
            page=data['page'],
            page_size=data.get('page_size'),
            **scope,
        )
        page = ride_management.list_rides(criteria)
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(_page_payload(page, request), 'Rides retrieved')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_ride(request):
    """
    Get the caller's current active ride

    Requesters get their PENDING/ACCEPTED/IN_PROGRESS ride, providers the
    ride they are assigned to.
    """
    role = role_of(request.user)
    if role == ActorRole.REQUESTER:
        ride = ride_management.get_current_requester_ride(request.user)
    elif role == ActorRole.PROVIDER:
        ride = ride_management.get_current_provider_ride(request.user)
    else:
        return error_response('forbidden', 'Admins have no current ride', status.HTTP_403_FORBIDDEN)

    if not ride:
        return success_response(None, 'No active ride found', has_active_ride=False)

    return success_response(
        RideSerializer(ride, context={'request': request}).data,
        'Active ride found',
        has_active_ride=True,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_detail(request, ride_id):
    try:
        ride = ride_management.get_ride(ride_id, actor=request.user)
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(RideSerializer(ride, context={'request': request}).data, 'Ride retrieved')


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_ride_status(request, ride_id):
    """
    Move a ride to a new status

    PUT Body:
    {
        "status": "IN_PROGRESS",  // IN_PROGRESS, COMPLETED or CANCELLED
        "reason": "Found another solution"  // optional, for CANCELLED
    }
    """
    serializer = RideStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        result = ride_management.transition_ride_status(
            request.user,
            ride_id,
            data['status'],
            actor_role=data.get('actor_role'),
            reason=data['reason'],
        )
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(
        RideSerializer(result.data, context={'request': request}).data,
        result.message,
        previous_status=result.extra['previous_status'],
    )


# ==================== Proposals ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def ride_proposals(request, ride_id):
    """
    GET  - proposals for the ride, cheapest first
    POST - submit a proposal (providers only)

    POST Body:
    {
        "price": "150.00",
        "estimated_time": 25,
        "message": "Flatbed, 20 minutes away"
    }
    """
    if request.method == 'POST':
        serializer = ProposalCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = ride_management.submit_proposal(request.user, ride_id, **serializer.validated_data)
        except RideManagementError as exc:
            return service_error_response(exc)

        return success_response(
            ProposalSerializer(result.data, context={'request': request}).data,
            result.message,
            status.HTTP_201_CREATED,
        )

    try:
        proposals = ride_management.list_proposals(ride_id, actor=request.user)
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(
        ProposalSerializer(proposals, many=True, context={'request': request}).data,
        'Proposals retrieved',
    )


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def accept_proposal(request, ride_id, proposal_id):
    """Accept one proposal; every other open proposal on the ride is rejected"""
    try:
        result = ride_management.accept_proposal(request.user, ride_id, proposal_id)
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(
        RideSerializer(result.data, context={'request': request}).data,
        result.message,
        rejected_proposals=result.extra['rejected'],
    )


# ==================== Ratings ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def rate_ride(request, ride_id):
    """
    Rate the other party of a completed ride

    POST Body:
    {
        "score": 5,
        "comment": "Fast and careful"
    }
    """
    serializer = RatingCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_management.rate_ride(request.user, ride_id, **serializer.validated_data)
    except RideManagementError as exc:
        return service_error_response(exc)

    return success_response(
        RatingSerializer(result.data).data,
        result.message,
        status.HTTP_201_CREATED,
    )
