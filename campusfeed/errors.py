"""
Domain error taxonomy.

Every failure the core raises derives from :class:`CampusFeedError`. The API
layer maps each kind to a stable HTTP status; anything outside this
hierarchy is treated as an internal failure and answered generically.
"""


class CampusFeedError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    public_detail = "Internal server error"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.public_detail)
        self.detail = detail or self.public_detail


class ValidationError(CampusFeedError):
    """Malformed or out-of-policy input."""

    status_code = 400
    public_detail = "Invalid input"


class ConflictError(CampusFeedError):
    """Uniqueness violation (e.g. an email that is already registered)."""

    status_code = 409
    public_detail = "Already exists"


class NotFoundError(CampusFeedError):
    status_code = 404
    public_detail = "Not found"


class InvalidCredentialsError(CampusFeedError):
    """Password did not match. Never surfaced as-is to clients."""

    status_code = 401
    public_detail = "Authentication failed"


class ForbiddenError(CampusFeedError):
    """Authenticated but not authorized for the requested action."""

    status_code = 403
    public_detail = "Forbidden"


class StorageError(CampusFeedError):
    """Blob upload failed. Details are logged, never returned."""

    status_code = 500
    public_detail = "Storage failure"


class Unauthenticated(CampusFeedError):
    """No valid session is attached to the request."""

    status_code = 401
    public_detail = "Not authenticated"
