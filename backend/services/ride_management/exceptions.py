"""Custom exceptions for ride management."""


class RideManagementError(Exception):
    """Base class for every failure raised by the ride services."""
    error_code = "ride_error"

    def __init__(self, message: str = "", error_code: str = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


# ---------------------- Error kinds ----------------------

class NotFoundError(RideManagementError):
    """Raised when a referenced entity does not exist."""
    error_code = "not_found"


class ForbiddenError(RideManagementError):
    """Raised when the actor lacks permission for the entity or transition."""
    error_code = "forbidden"


class InvalidStateError(RideManagementError):
    """Raised when the operation is illegal given the current status."""
    error_code = "invalid_state"


class ConflictError(RideManagementError):
    """Raised on uniqueness violations."""
    error_code = "conflict"


class ValidationError(RideManagementError):
    """Raised on malformed input."""
    error_code = "validation_error"


# ---------------------- Specific failures ----------------------

class RideNotFoundError(NotFoundError):
    """Raised when a ride cannot be found."""
    error_code = "ride_not_found"


class ProposalNotFoundError(NotFoundError):
    """Raised when a proposal cannot be found for the ride."""
    error_code = "proposal_not_found"


class RideNotAvailableError(InvalidStateError):
    """Raised when a ride is not in an available state for the operation."""
    error_code = "ride_not_available"


class ProviderNotAvailableError(InvalidStateError):
    """Raised when the provider is not available to take the ride."""
    error_code = "provider_not_available"


class ProposalExpiredError(InvalidStateError):
    """Raised when a proposal is expired or already resolved."""
    error_code = "proposal_expired"


class InvalidTransitionError(InvalidStateError):
    """Raised when no actor may move the ride to the requested status."""
    error_code = "invalid_transition"


class ActiveRideExistsError(ConflictError):
    """Raised when user already has an active ride."""
    error_code = "active_ride_exists"


class DuplicateProposalError(ConflictError):
    """Raised when a provider already bid on the ride."""
    error_code = "duplicate_proposal"


class DuplicateRatingError(ConflictError):
    """Raised when the evaluator already rated the ride."""
    error_code = "duplicate_rating"
