from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsProvider
from common.responses import service_error_response, success_response
from providers import services
from providers.serializers import (
    AvailabilitySerializer,
    AvailableRidesQuerySerializer,
    ProviderProfileSerializer,
)
from rides.serializers import RideListQuerySerializer, RideSerializer
from services.ride_management import RideManagementError, RideQuery, list_rides


class ProviderAvailabilityView(APIView):
    """
    Toggle availability and report position

    PUT Body:
    {
        "is_available": true,
        "latitude": -23.55,  // optional
        "longitude": -46.63  // optional
    }
    """
    permission_classes = [IsAuthenticated, IsProvider]

    def put(self, request):
        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            profile = services.get_profile(request.user)
            profile = services.set_availability(
                profile,
                data["is_available"],
                lat=data.get("latitude"),
                lon=data.get("longitude"),
            )
        except RideManagementError as exc:
            return service_error_response(exc)

        state = "available" if profile.is_available else "offline"
        return success_response(
            ProviderProfileSerializer(profile, context={"request": request}).data,
            f"You are now {state}",
        )


class AvailableRidesView(APIView):
    """Open ride requests the provider can bid on"""
    permission_classes = [IsAuthenticated, IsProvider]

    def get(self, request):
        params = AvailableRidesQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        try:
            profile = services.get_profile(request.user)
        except RideManagementError as exc:
            return service_error_response(exc)

        if not profile.is_available:
            return success_response(
                [],
                "Set yourself available to receive ride requests.",
                count=0,
            )

        matches = services.find_available_rides(
            profile,
            lat=data.get("latitude"),
            lon=data.get("longitude"),
            radius_km=data.get("radius_km"),
            service_type=data.get("service_type"),
        )

        results = []
        for distance, ride in matches:
            item = RideSerializer(ride, context={"request": request}).data
            item["distance_km"] = round(distance / 1000, 2) if distance is not None else None
            results.append(item)

        return success_response(results, "Available rides retrieved", count=len(results))


class ProviderRideHistoryView(APIView):
    """Rides assigned to the provider, newest first, paginated"""
    permission_classes = [IsAuthenticated, IsProvider]

    def get(self, request):
        params = RideListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        try:
            criteria = RideQuery(
                provider_id=request.user.id,
                statuses=data["statuses"],
                service_types=data["service_types"],
                page=data["page"],
                page_size=data.get("page_size"),
            )
            page = list_rides(criteria)
        except RideManagementError as exc:
            return service_error_response(exc)

        return success_response(
            {
                "results": RideSerializer(page.items, many=True, context={"request": request}).data,
                "page": page.page,
                "page_size": page.page_size,
                "total": page.total,
                "pages": page.pages,
            },
            "Ride history retrieved",
        )
