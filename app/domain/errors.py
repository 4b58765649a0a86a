"""Domain error taxonomy: mapped to HTTP statuses by the API layer."""


class DomainError(Exception):
    """Base class for business-rule failures."""


class NotFoundError(DomainError):
    """Referenced entity does not exist."""


class InvalidInputError(DomainError):
    """Malformed identifier/timestamp or missing precondition data."""


class ConflictError(DomainError):
    """State-machine precondition violated (wrong phase, terminal state, lost race)."""


class PermissionDeniedError(DomainError):
    """Caller is not allowed to perform the operation."""
