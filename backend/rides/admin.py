"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import Ride, Proposal, Rating


class ProposalInline(admin.TabularInline):
    model = Proposal
    extra = 0
    readonly_fields = ("provider", "price", "estimated_time", "status", "created_at", "expires_at")
    can_delete = False


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    """Ride admin"""
    list_display = ['id', 'requester', 'provider', 'service_type', 'status', 'agreed_price', 'created_at']
    list_filter = ['status', 'service_type', 'urgency', 'created_at']
    search_fields = ['requester__username', 'provider__username', 'pickup_address']
    readonly_fields = ['created_at', 'updated_at', 'accepted_at', 'started_at', 'completed_at', 'cancelled_at']
    date_hierarchy = 'created_at'
    inlines = [ProposalInline]


@admin.register(Proposal)
class ProposalAdmin(admin.ModelAdmin):
    list_display = ("id", "ride", "provider", "price", "estimated_time", "status", "created_at", "expires_at")
    list_filter = ("status",)
    search_fields = ("ride__id", "provider__username")


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ("ride", "evaluator", "evaluated", "score", "created_at")
    search_fields = ("ride__id", "evaluator__username", "evaluated__username")
