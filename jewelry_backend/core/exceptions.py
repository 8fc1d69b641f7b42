# core/exceptions.py

"""
LIFECYCLE ERRORS

Centralized domain errors for the order / repair / return lifecycles.

Every error carries:
- code:        stable machine-readable category (API contract)
- http_status: status used by the API exception handler

DependencyError is raised by integration clients. Lifecycle services catch it
and log it; it only reaches the API when a caller asks for it explicitly.
"""


class LifecycleError(Exception):
    """Base exception for all lifecycle failures."""

    code = "LIFECYCLE_ERROR"
    http_status = 400

    def __init__(self, message: str = "", *, details=None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code
        self.details = details


class ValidationError(LifecycleError):
    """Malformed or insufficient input."""

    code = "VALIDATION_ERROR"
    http_status = 400


class InvalidStateError(LifecycleError):
    """Operation not permitted in the entity's current status."""

    code = "INVALID_STATE"
    http_status = 409


class InvalidTransitionError(LifecycleError):
    """Requested status change is not part of the transition graph."""

    code = "INVALID_TRANSITION"
    http_status = 409


class NotFoundError(LifecycleError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"
    http_status = 404


class DependencyError(LifecycleError):
    """An external service call failed or timed out."""

    code = "DEPENDENCY_FAILED"
    http_status = 502
