from rest_framework import serializers
from django.contrib.auth import authenticate

from .models import ActorRole, User
from providers.models import ProviderProfile


class UserSerializer(serializers.ModelSerializer):

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "phone_number",
            "rating",
            "completed_rides",
        ]
        read_only_fields = ["id", "rating", "completed_rides"]


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=[ActorRole.REQUESTER, ActorRole.PROVIDER])
    vehicle_plate = serializers.CharField(required=False)
    vehicle_type = serializers.CharField(required=False, allow_blank=True)
    service_types = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = User
        fields = [
            'username', 'password', 'email', 'role', 'phone_number',
            'vehicle_plate', 'vehicle_type', 'service_types',
        ]

    def validate_email(self, value):
        if value and User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def validate(self, data):
        # Providers must register the tow vehicle
        if data['role'] == ActorRole.PROVIDER and not data.get('vehicle_plate'):
            raise serializers.ValidationError({
                'vehicle_plate': 'Vehicle plate is required for providers'
            })
        return data

    def create(self, validated_data):
        vehicle_plate = validated_data.pop('vehicle_plate', None)
        vehicle_type = validated_data.pop('vehicle_type', '')
        service_types = validated_data.pop('service_types', [])

        user = User.objects.create_user(
            username=validated_data['username'],
            email=validated_data.get('email', ''),
            password=validated_data['password'],
            role=validated_data['role'],
            phone_number=validated_data.get('phone_number', ''),
        )

        if user.role == ActorRole.PROVIDER:
            ProviderProfile.objects.create(
                user=user,
                vehicle_plate=vehicle_plate,
                vehicle_type=vehicle_type,
                service_types=service_types,
            )

        return user
