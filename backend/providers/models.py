from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL


class ProviderProfile(models.Model):
    """Tow provider details, approval and availability"""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='provider_profile')

    # Vehicle details
    vehicle_type = models.CharField(max_length=50, blank=True)
    vehicle_plate = models.CharField(max_length=20, unique=True)
    vehicle_model = models.CharField(max_length=100, blank=True)
    vehicle_color = models.CharField(max_length=30, blank=True)

    # Service offering
    service_types = models.JSONField(default=list, blank=True)
    service_radius_km = models.FloatField(default=10)

    # Shared mutable flag: flipped to False when a proposal is accepted
    is_available = models.BooleanField(default=False)
    is_approved = models.BooleanField(default=False)

    current_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    last_seen = models.DateTimeField(default=timezone.now)

    rating = models.FloatField(default=0)

    class Meta:
        db_table = 'provider_profiles'

    def __str__(self):
        return f"{self.user.username} - {self.vehicle_plate}"
