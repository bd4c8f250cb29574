"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    kind = "app_error"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    kind = "validation_error"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    kind = "not_found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ConflictError(AppError):
    """Raised when a request conflicts with the current state of a resource."""

    kind = "conflict"

    def __init__(self, message="Request conflicts with the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class DuplicateResourceError(ConflictError):
    """Raised when trying to create a resource that already exists."""

    kind = "duplicate_resource"

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message)


class CapacityExceededError(ConflictError):
    """Raised when a study group roster is already full."""

    kind = "capacity_exceeded"

    def __init__(self, message="Group is full."):
        """Initialize the error."""
        super().__init__(message)


class PermissionDeniedError(AppError):
    """Raised when the caller lacks the role an operation requires."""

    kind = "permission_denied"

    def __init__(self, message="You do not have permission to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class ExternalServiceError(AppError):
    """Raised when a collaborating service fails or is unavailable."""

    kind = "external_service_failure"

    def __init__(self, message="An external service is unavailable."):
        """Initialize the error."""
        super().__init__(message, 502)
