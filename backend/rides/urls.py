from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Ride collection
    path('', views.rides_collection, name='rides'),
    path('current/', views.current_ride, name='current-ride'),

    # Single ride
    path('<int:ride_id>/', views.ride_detail, name='ride-detail'),
    path('<int:ride_id>/status/', views.update_ride_status, name='ride-status'),
    path('<int:ride_id>/rating/', views.rate_ride, name='ride-rating'),

    # Proposals
    path('<int:ride_id>/proposals/', views.ride_proposals, name='ride-proposals'),
    path('<int:ride_id>/proposals/<int:proposal_id>/', views.accept_proposal, name='accept-proposal'),
]
