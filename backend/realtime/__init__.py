"""
Realtime app for WebSocket delivery of ride events.

This app provides:
- A WebSocket consumer that streams ride events to requesters and providers
- Notification helpers used by the ride services (after-commit fanout)
- JWT authentication middleware for WebSocket connections

Key Components:
    - consumers/: WebSocket consumers (base, ride events)
    - notifications.py: Ride event notification helpers
    - middleware.py: JWT query-string authentication

Usage:
    from realtime.consumers import RideEventsConsumer
    from realtime.notifications import notify_requester_event, notify_provider_event
"""
