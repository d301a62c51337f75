from django.db import models
from django.db.models import Q
from django.conf import settings

from accounts.models import ActorRole


class RideStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    ACCEPTED = 'ACCEPTED', 'Accepted'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


ACTIVE_RIDE_STATUSES = (RideStatus.PENDING, RideStatus.ACCEPTED, RideStatus.IN_PROGRESS)
TERMINAL_RIDE_STATUSES = (RideStatus.COMPLETED, RideStatus.CANCELLED)


class ProposalStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    ACCEPTED = 'ACCEPTED', 'Accepted'
    REJECTED = 'REJECTED', 'Rejected'
    EXPIRED = 'EXPIRED', 'Expired'


class ServiceType(models.TextChoices):
    LIGHT_TOW = 'LIGHT_TOW', 'Light Tow'
    HEAVY_TOW = 'HEAVY_TOW', 'Heavy Tow'
    TIRE_CHANGE = 'TIRE_CHANGE', 'Tire Change'
    FUEL = 'FUEL', 'Fuel Delivery'
    BATTERY = 'BATTERY', 'Battery Jump'
    LOCKOUT = 'LOCKOUT', 'Lockout'


class Urgency(models.TextChoices):
    LOW = 'LOW', 'Low'
    NORMAL = 'NORMAL', 'Normal'
    HIGH = 'HIGH', 'High'
    EMERGENCY = 'EMERGENCY', 'Emergency'


class PaymentMethod(models.TextChoices):
    PIX = 'PIX', 'Pix'
    CREDIT_CARD = 'CREDIT_CARD', 'Credit Card'
    DEBIT_CARD = 'DEBIT_CARD', 'Debit Card'
    CASH = 'CASH', 'Cash'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'
    REFUNDED = 'REFUNDED', 'Refunded'


class Ride(models.Model):
    """A roadside service request, from creation through completion or cancellation"""

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='requested_rides'
    )

    # Stays null while PENDING; set once by proposal acceptance
    provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='assigned_rides'
    )

    service_type = models.CharField(max_length=20, choices=ServiceType.choices)
    description = models.TextField(blank=True)
    vehicle_info = models.CharField(max_length=255, blank=True)
    urgency = models.CharField(max_length=10, choices=Urgency.choices, default=Urgency.NORMAL)

    # Origin
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_address = models.TextField(blank=True)

    # Destination
    destination_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    destination_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    destination_address = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=RideStatus.choices, default=RideStatus.PENDING)

    # Pricing
    estimated_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    agreed_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    final_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    estimated_time = models.PositiveIntegerField(null=True, blank=True)  # minutes

    # Payment
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, null=True, blank=True)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    cancelled_by = models.CharField(max_length=10, choices=ActorRole.choices, null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    class Meta:
        db_table = 'rides'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['requester'],
                condition=Q(status__in=ACTIVE_RIDE_STATUSES),
                name='unique_active_ride_per_requester'
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at'], name='rides_status_created_idx'),
        ]

    def __str__(self):
        return f"Ride #{self.id} - {self.requester_id} - {self.status}"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_RIDE_STATUSES


class Proposal(models.Model):
    """A provider's price bid on a PENDING ride."""

    ride = models.ForeignKey(
        Ride,
        on_delete=models.CASCADE,
        related_name='proposals'
    )

    provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='proposals'
    )

    price = models.DecimalField(max_digits=10, decimal_places=2)
    estimated_time = models.PositiveIntegerField()  # minutes
    message = models.TextField(blank=True)

    status = models.CharField(
        max_length=20,
        choices=ProposalStatus.choices,
        default=ProposalStatus.PENDING,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'ride_proposals'
        ordering = ['price', 'created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['ride', 'provider'],
                name='unique_ride_provider_proposal'
            ),
            models.UniqueConstraint(
                fields=['ride'],
                condition=Q(status=ProposalStatus.ACCEPTED),
                name='unique_accepted_proposal_per_ride'
            ),
        ]

    def __str__(self):
        return f"Proposal #{self.id} - Ride {self.ride_id} -> Provider {self.provider_id} ({self.status})"


class Rating(models.Model):
    """Post-completion feedback; one per (ride, evaluator)."""

    ride = models.ForeignKey(Ride, on_delete=models.CASCADE, related_name='ratings')
    evaluator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ratings_given'
    )
    evaluator_role = models.CharField(max_length=10, choices=ActorRole.choices)
    evaluated = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='ratings_received'
    )
    evaluated_role = models.CharField(max_length=10, choices=ActorRole.choices)
    score = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ride_ratings'
        constraints = [
            models.UniqueConstraint(
                fields=['ride', 'evaluator'],
                name='unique_rating_per_evaluator'
            ),
        ]

    def __str__(self):
        return f"Rating {self.score} on ride {self.ride_id} by {self.evaluator_id}"
