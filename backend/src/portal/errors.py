"""
Error taxonomy shared by the core and the HTTP handlers.

Every error is scoped to a single operation. Handlers turn them into
API Gateway responses with the matching status code.
"""
from typing import Any, Dict, Optional


class PortalError(Exception):
    """Base class for failures surfaced directly to the caller."""

    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        body = {'message': self.message}
        if self.field:
            body['field'] = self.field
        return body


class ValidationError(PortalError):
    """Malformed or incomplete input."""
    status_code = 400


class Unauthenticated(PortalError):
    """No caller identity, or bad credentials."""
    status_code = 401


class Forbidden(PortalError):
    """Authenticated but not permitted."""
    status_code = 403


class NotFound(PortalError):
    """Referenced entity absent."""
    status_code = 404


class Conflict(PortalError):
    """Duplicate unique value."""
    status_code = 409
