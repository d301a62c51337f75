from rest_framework import serializers

from providers.models import ProviderProfile
from accounts.serializers import UserSerializer
from rides.models import ServiceType


class ProviderProfileSerializer(serializers.ModelSerializer):
    """
    Full provider profile serializer
    """
    user = UserSerializer(read_only=True)

    class Meta:
        model = ProviderProfile
        fields = [
            "id",
            "user",
            "vehicle_type",
            "vehicle_plate",
            "vehicle_model",
            "vehicle_color",
            "service_types",
            "service_radius_km",
            "is_available",
            "is_approved",
            "current_latitude",
            "current_longitude",
            "last_seen",
            "rating",
        ]
        read_only_fields = ["id", "is_available", "is_approved", "last_seen", "rating"]


class ProviderBasicSerializer(serializers.ModelSerializer):
    """
    Public provider info shown next to a proposal or an assigned ride.
    """
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    phone_number = serializers.CharField(source="user.phone_number", read_only=True)
    completed_rides = serializers.IntegerField(source="user.completed_rides", read_only=True)

    class Meta:
        model = ProviderProfile
        fields = [
            "user_id",
            "username",
            "phone_number",
            "vehicle_type",
            "vehicle_plate",
            "vehicle_model",
            "vehicle_color",
            "rating",
            "completed_rides",
            "current_latitude",
            "current_longitude",
        ]


class AvailabilitySerializer(serializers.Serializer):
    """
    Serializer for updating provider availability and position.
    """
    is_available = serializers.BooleanField()
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)

    def validate(self, data):
        if ("latitude" in data) != ("longitude" in data):
            raise serializers.ValidationError("latitude and longitude must be sent together")
        return data


class AvailableRidesQuerySerializer(serializers.Serializer):
    """Optional position filter for the open-rides feed."""
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=0.1)
    service_type = serializers.ChoiceField(choices=ServiceType.choices, required=False)

    def validate(self, data):
        if ("latitude" in data) != ("longitude" in data):
            raise serializers.ValidationError("latitude and longitude must be sent together")
        return data
