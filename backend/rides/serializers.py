from rest_framework import serializers
from django.contrib.auth import get_user_model

from accounts.models import ActorRole
from providers.serializers import ProviderBasicSerializer
from services.ride_management import RideOrdering
from .models import (
    PaymentMethod,
    Proposal,
    Rating,
    Ride,
    RideStatus,
    ServiceType,
    Urgency,
)

User = get_user_model()


class RequesterBasicSerializer(serializers.ModelSerializer):
    """Public requester info shown to providers"""

    class Meta:
        model = User
        fields = ['id', 'username', 'phone_number', 'rating']


class RideSerializer(serializers.ModelSerializer):
    """Serializer for Rides"""
    requester = RequesterBasicSerializer(read_only=True)
    provider = ProviderBasicSerializer(read_only=True, allow_null=True, source='provider.provider_profile')

    class Meta:
        model = Ride
        fields = [
            'id', 'requester', 'provider', 'service_type', 'description', 'vehicle_info',
            'urgency', 'pickup_latitude', 'pickup_longitude', 'pickup_address',
            'destination_latitude', 'destination_longitude', 'destination_address',
            'status', 'estimated_price', 'agreed_price', 'final_price', 'estimated_time',
            'payment_method', 'payment_status', 'created_at', 'updated_at',
            'accepted_at', 'started_at', 'completed_at', 'cancelled_at',
            'cancelled_by', 'cancellation_reason',
        ]
        read_only_fields = fields


class RideCreateSerializer(serializers.Serializer):
    """Serializer for creating ride requests"""
    service_type = serializers.ChoiceField(choices=ServiceType.choices)
    pickup_latitude = serializers.FloatField(min_value=-90, max_value=90)
    pickup_longitude = serializers.FloatField(min_value=-180, max_value=180)
    pickup_address = serializers.CharField(required=False, allow_blank=True, default='')
    destination_latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    destination_longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    destination_address = serializers.CharField(required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    vehicle_info = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)
    urgency = serializers.ChoiceField(choices=Urgency.choices, default=Urgency.NORMAL)
    estimated_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False, allow_null=True)

    def validate(self, data):
        has_lat = data.get('destination_latitude') is not None
        has_lon = data.get('destination_longitude') is not None
        if has_lat != has_lon:
            raise serializers.ValidationError('destination_latitude and destination_longitude must be sent together')
        return data


class RideStatusUpdateSerializer(serializers.Serializer):
    """Serializer for generic status transitions"""
    status = serializers.ChoiceField(choices=RideStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    actor_role = serializers.ChoiceField(choices=ActorRole.choices, required=False)


class RideListQuerySerializer(serializers.Serializer):
    """Query string for ride listings"""
    ORDERINGS = {
        'newest': RideOrdering.NEWEST,
        'oldest': RideOrdering.OLDEST,
        'nearest': RideOrdering.NEAREST,
    }

    status = serializers.CharField(required=False)
    service_type = serializers.CharField(required=False)
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=0.1)
    ordering = serializers.ChoiceField(choices=list(ORDERINGS), default='newest')
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    page_size = serializers.IntegerField(required=False, min_value=1)

    def _split(self, value, choices, field_name):
        items = [item.strip().upper() for item in value.split(',') if item.strip()]
        unknown = [item for item in items if item not in choices.values]
        if unknown:
            raise serializers.ValidationError({field_name: f"Unknown values: {', '.join(unknown)}"})
        return items

    def validate(self, data):
        if ('latitude' in data) != ('longitude' in data):
            raise serializers.ValidationError('latitude and longitude must be sent together')
        data['statuses'] = self._split(data.pop('status', ''), RideStatus, 'status')
        data['service_types'] = self._split(data.pop('service_type', ''), ServiceType, 'service_type')
        data['ordering'] = self.ORDERINGS[data['ordering']]
        return data


class ProposalSerializer(serializers.ModelSerializer):
    """Proposal with the bidding provider's public profile"""
    provider = ProviderBasicSerializer(read_only=True, allow_null=True, source='provider.provider_profile')
    provider_id = serializers.IntegerField(read_only=True)
    ride_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Proposal
        fields = [
            'id', 'ride_id', 'provider_id', 'provider', 'price', 'estimated_time',
            'message', 'status', 'created_at', 'expires_at', 'accepted_at',
            'rejected_at', 'expired_at',
        ]
        read_only_fields = fields


class ProposalCreateSerializer(serializers.Serializer):
    """Serializer for submitting a proposal"""
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    estimated_time = serializers.IntegerField()
    message = serializers.CharField(required=False, allow_blank=True, default='')


class RatingSerializer(serializers.ModelSerializer):

    class Meta:
        model = Rating
        fields = [
            'id', 'ride', 'evaluator', 'evaluator_role', 'evaluated',
            'evaluated_role', 'score', 'comment', 'created_at',
        ]
        read_only_fields = fields


class RatingCreateSerializer(serializers.Serializer):
    score = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_blank=True, default='')
