class ParkWellError(ValueError):
    """Base class for business rule violations. Carries the HTTP status to use."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ParkWellError):
    status_code = 400


class AuthenticationError(ParkWellError):
    status_code = 401


class InsufficientBalanceError(ParkWellError):
    status_code = 402


class PermissionDeniedError(ParkWellError):
    status_code = 403


class NotFoundError(ParkWellError):
    status_code = 404


class ConflictError(ParkWellError):
    status_code = 409
