"""Exception taxonomy for the CraveBites API.

Services raise these; ``cravebites.main`` maps them to HTTP responses.
"""
from typing import Iterable, Optional


class CraveBitesError(Exception):
    """Base exception for all CraveBites errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CraveBitesError):
    """Raised when a payload is malformed or misses required fields."""

    status_code = 400

    def __init__(self, errors: Iterable[str], message: str = "Validation Error"):
        self.errors = list(errors)
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message}: {'; '.join(self.errors)}"


class NotFound(CraveBitesError):
    """Raised when an id does not resolve (or is malformed)."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[object] = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class DuplicateKey(CraveBitesError):
    """Raised when a uniqueness constraint would be violated."""

    status_code = 400


class InvalidState(CraveBitesError):
    """Raised when an enumerated field receives a value outside its domain."""

    status_code = 400


class AuthenticationError(CraveBitesError):
    """Raised when credentials or a bearer token are rejected."""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class UpstreamFailure(CraveBitesError):
    """Raised when the database or an external collaborator is unavailable."""

    status_code = 500


class UploadError(UpstreamFailure):
    """Raised when the media host rejects or fails an upload."""


class MailError(UpstreamFailure):
    """Raised when the SMTP transport fails to deliver a message."""
