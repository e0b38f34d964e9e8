"""Domain errors raised by services and rendered by the API layer.

Each error carries the HTTP status it maps to and optional extra fields
that are merged into the `{"success": false, "message": ...}` body.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class InvalidInputError(ServiceError):
    status_code = 400


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class CooldownActiveError(ForbiddenError):
    """Raised when an attempt is made before the cooldown window closes."""


class UpstreamError(ServiceError):
    """A third-party API (LeetCode) could not be reached or answered badly."""
    status_code = 502


class PayloadTooLargeError(ServiceError):
    status_code = 413


class UnsupportedMediaError(ServiceError):
    status_code = 415
