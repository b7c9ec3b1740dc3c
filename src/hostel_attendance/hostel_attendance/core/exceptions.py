class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""


class InvalidProofError(DomainError):
    """Raised when a proof-of-presence payload cannot be parsed."""


class SessionClosedError(DomainError):
    """Raised when a check-in arrives outside the open window."""


class AlreadyMarkedError(DomainError):
    """Raised when the participant already has a record for the session.

    This is a normal outcome (retried or double-submitted check-ins), not a fault.
    """


class DuplicateRecordError(DomainError):
    """Ledger signal: the (session, participant) unique key already exists."""
