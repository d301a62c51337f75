from django.contrib import admin
from providers.models import ProviderProfile


@admin.register(ProviderProfile)
class ProviderProfileAdmin(admin.ModelAdmin):
    """Admin panel for approving and inspecting Provider Profiles"""

    list_display = [
        "user",
        "vehicle_plate",
        "vehicle_type",
        "is_approved",
        "is_available",
        "rating",
        "last_seen",
    ]

    list_filter = [
        "is_approved",
        "is_available",
    ]

    search_fields = [
        "user__username",
        "vehicle_plate",
    ]

    readonly_fields = [
        "last_seen",
        "rating",
    ]

    ordering = ("user__username",)
