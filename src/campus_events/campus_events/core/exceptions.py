class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced row does not exist."""


class ConflictError(DomainError):
    """Raised when a uniqueness rule would be broken (duplicate row)."""


class CapacityError(ConflictError):
    """Raised when an event has no seats left."""


class StoreError(Exception):
    """Raised when the backing store fails (network, driver, server)."""


class TableMissingError(StoreError):
    """Raised when the backing table has not been provisioned."""
