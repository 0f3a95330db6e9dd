"""
Error taxonomy for the back office.

- ValidationError: a record failed a business rule before reaching the gateway.
- GatewayError: the persistence collaborator rejected or failed an operation.
- AuthError: sign-in / session failures. Messages are generic on purpose, details go to the log.

Views catch these and surface `str(exc)` as a form-level message. Nothing here is fatal to the process.
"""

from __future__ import annotations


class PharmaDistError(Exception):
    """Base class for all application errors."""


class ValidationError(PharmaDistError):
    """Raised when a record violates a validation rule."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GatewayError(PharmaDistError):
    """Raised when a persistence operation fails."""


class NotFoundError(GatewayError):
    """Requested entity does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(GatewayError):
    """A storage constraint (e.g. unique SKU) rejected the write."""


class AuthError(PharmaDistError):
    """Sign-in or session failure."""
