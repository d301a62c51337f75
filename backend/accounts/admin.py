from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from accounts.models import User
from providers.models import ProviderProfile


class ProviderProfileInline(admin.StackedInline):
    model = ProviderProfile
    can_delete = False
    extra = 0
    fields = ("vehicle_plate", "vehicle_type", "service_types", "is_approved", "is_available")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Requesters, tow providers and admins; provider profiles are edited inline."""

    list_display = ("username", "role", "phone_number", "rating", "completed_rides", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("username", "email", "phone_number")
    ordering = ("username",)
    inlines = [ProviderProfileInline]

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Roadside", {"fields": ("role", "phone_number", "rating", "completed_rides")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Roadside", {"fields": ("role", "phone_number")}),
    )
    readonly_fields = ("rating", "completed_rides")
