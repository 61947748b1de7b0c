"""Domain error taxonomy raised by the service layer.

Routers never translate these by hand: ``ekerja.main`` registers one exception
handler that turns any ``ServiceError`` into a JSON body with the mapped status.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.code.replace("_", " ")


class Unauthenticated(ServiceError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"


class InvalidInput(ServiceError):
    status_code = 400
    code = "invalid_input"


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"


class Expired(ServiceError):
    """The caller held a capability once, but it is past its expiry."""

    status_code = 410
    code = "expired"


class PreconditionFailed(ServiceError):
    """Action attempted while the resource is in the wrong state."""

    status_code = 412
    code = "precondition_failed"
