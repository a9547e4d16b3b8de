"""Typed errors raised by use cases and guards.

Each error carries the HTTP status it maps to; the exception normalizer is the
only place that turns them into a response body.
"""


class ServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class OperationFailed(ServiceError):
    """Unexpected store failure, wrapped with the original message."""
    status_code = 500
