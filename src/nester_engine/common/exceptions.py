"""Nester-Engine exception hierarchy."""


class NesterError(Exception):
    """Base exception for all Nester errors.

    ``status_code`` is the HTTP status the API layer answers with when the
    error escapes a route handler.
    """

    status_code = 500

    def __init__(self, message: str = "", code: str = "NESTER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class RequestValidationFailed(NesterError):
    """Raised for missing or malformed input and unsupported targets."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="VALIDATION_ERROR")


class UnauthorizedError(NesterError):
    """Raised when the caller has no identity or acts for another tenant."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED")


class NotFoundError(NesterError):
    """Raised when a target entity is absent or not owned by the caller."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class UpstreamError(NesterError):
    """Raised when the workflow engine, backend or data store fails."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="UPSTREAM_ERROR")


class WorkflowEngineError(NesterError):
    """Raised by the workflow client when a job cannot be dispatched."""

    def __init__(self, message: str = "Workflow engine request failed"):
        super().__init__(message, code="WORKFLOW_ERROR")


class IdentityProviderError(NesterError):
    """Raised by the identity client for provider-side failures."""

    def __init__(self, message: str = "Identity provider request failed", status: int | None = None):
        self.status = status
        super().__init__(message, code="IDENTITY_ERROR")


class InvalidTransitionError(NesterError):
    """Raised when a work record would leave a terminal state."""

    def __init__(self, message: str = "Work record is already in a terminal state"):
        super().__init__(message, code="INVALID_TRANSITION")


class ScopeError(NesterError):
    """Raised when a per-request accessor is used outside its scope."""

    def __init__(self, message: str):
        super().__init__(message, code="SCOPE_ERROR")
