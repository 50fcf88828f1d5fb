"""Domain exceptions raised by services and mapped to HTTP responses in main."""


class YqworkError(Exception):
    """Base exception for the work platform."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class PermissionDenied(YqworkError):
    """Actor lacks the required permission or department match."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


class NotFound(YqworkError):
    """Referenced campaign, record, user, role or permission does not exist."""


class IllegalTransition(YqworkError):
    """Requested change violates the workflow table or one of its preconditions."""


class Conflict(YqworkError):
    """A uniquely keyed resource already exists."""


class InfrastructureError(YqworkError):
    """Underlying storage or lookup failed. Safe to retry."""
