"""Application error taxonomy.

Gateways raise these; the HTTP layer maps them to a status code and a
`{"status": "error", "error": ...}` body in one place (see main.py), and
the realtime bridge turns them into `error` events.
"""


class AppError(Exception):
    """Base for errors that carry an HTTP status."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400


class AuthError(AppError):
    """Bad credentials or no session."""

    status_code = 401


class ForbiddenError(AuthError):
    """Authenticated but not allowed."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class StoreError(AppError):
    """Storage unavailable or rejected the operation."""

    status_code = 500


class StartupError(RuntimeError):
    """Missing configuration or failed initial store connection."""
