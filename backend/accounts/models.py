from django.db import models
from django.contrib.auth.models import AbstractUser


class ActorRole(models.TextChoices):
    """Closed set of actor roles; decides which ride transitions are legal."""
    REQUESTER = 'requester', 'Requester'
    PROVIDER = 'provider', 'Tow Provider'
    ADMIN = 'admin', 'Admin'


class User(AbstractUser):
    """Extended user model with role selection"""

    # Role & basic info
    role = models.CharField(max_length=10, choices=ActorRole.choices, default=ActorRole.REQUESTER)
    phone_number = models.CharField(max_length=15, blank=True)
    rating = models.FloatField(default=0)
    completed_rides = models.IntegerField(default=0)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def actor_role(self) -> ActorRole:
        return ActorRole(self.role)
