"""
Domain error taxonomy.

Services raise these; only the HTTP layer (see ``upm.main``) turns them
into status codes and ``{"success": false, "message": ...}`` payloads.
"""
from typing import List, Optional


class UPMError(Exception):
    """Base class for errors reported by service functions."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(UPMError):
    """Malformed input: bad vital sign, missing field, bad date ordering."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class ForbiddenError(UPMError):
    """Ownership, role or access-level violation."""


class NotFoundError(UPMError):
    """Requested entity does not exist."""


class ConflictError(UPMError):
    """State conflict: duplicate billing, billing no longer pending."""


class InternalError(UPMError):
    """Unexpected persistence or external-service failure."""
