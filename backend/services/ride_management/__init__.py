"""
Ride management service - Ride, proposal and rating operations.

This module handles:
    - Creating and querying ride requests
    - Submitting and expiring proposals
    - Accepting a proposal (binding a provider)
    - Moving rides through their status lifecycle
    - Rating completed rides
"""

from .ride_lifecycle import (
    ServiceResult,
    check_active_ride,
    create_ride_request,
    get_ride,
    list_rides,
    get_current_requester_ride,
    get_current_provider_ride,
    role_of,
)
from .proposal_ledger import (
    submit_proposal,
    list_proposals,
    expire_stale_proposals,
)
from .status_transitions import (
    TRANSITIONS,
    allowed_transitions,
    transition_ride_status,
)
from .acceptance import accept_proposal
from .ratings import rate_ride
from .queries import GeoFilter, RideOrdering, RidePage, RideQuery

from .exceptions import (
    RideManagementError,
    NotFoundError,
    ForbiddenError,
    InvalidStateError,
    ConflictError,
    ValidationError,
    RideNotFoundError,
    ProposalNotFoundError,
    RideNotAvailableError,
    ProviderNotAvailableError,
    ProposalExpiredError,
    InvalidTransitionError,
    ActiveRideExistsError,
    DuplicateProposalError,
    DuplicateRatingError,
)

__all__ = [
    # Entity store
    "ServiceResult",
    "check_active_ride",
    "create_ride_request",
    "get_ride",
    "list_rides",
    "get_current_requester_ride",
    "get_current_provider_ride",
    "role_of",
    # Queries
    "GeoFilter",
    "RideOrdering",
    "RidePage",
    "RideQuery",
    # Proposals
    "submit_proposal",
    "list_proposals",
    "expire_stale_proposals",
    "accept_proposal",
    # Lifecycle
    "TRANSITIONS",
    "allowed_transitions",
    "transition_ride_status",
    "rate_ride",
    # Exceptions
    "RideManagementError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidStateError",
    "ConflictError",
    "ValidationError",
    "RideNotFoundError",
    "ProposalNotFoundError",
    "RideNotAvailableError",
    "ProviderNotAvailableError",
    "ProposalExpiredError",
    "InvalidTransitionError",
    "ActiveRideExistsError",
    "DuplicateProposalError",
    "DuplicateRatingError",
]
