from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check),  # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # register, login, refresh

    # Provider APIs (availability, open rides feed, ride history)
    path('api/providers/', include('providers.urls')),

    # Rides endpoints (at /api/rides/)
    path('api/rides/', include('rides.urls')),  # rides, proposals, status, rating
]
