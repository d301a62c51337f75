from django.urls import path
from .views import (
    ProviderAvailabilityView,
    AvailableRidesView,
    ProviderRideHistoryView,
)

urlpatterns = [
    path("availability/", ProviderAvailabilityView.as_view(), name="provider-availability"),
    path("available-rides/", AvailableRidesView.as_view(), name="provider-available-rides"),
    path("rides/", ProviderRideHistoryView.as_view(), name="provider-rides"),
]
