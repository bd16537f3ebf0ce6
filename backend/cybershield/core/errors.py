# backend/cybershield/core/errors.py


class CyberShieldError(Exception):
    """
    Base class for every error the core raises on purpose.

    The API layer turns these into `{"error": ..., "message": ...}` bodies
    using `status_code` and `error`.
    """

    status_code: int = 500
    error: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(CyberShieldError):
    """Malformed or empty request data. Raised before any store mutation."""

    status_code = 400
    error = "invalid_input"


class NotFound(CyberShieldError):
    status_code = 404
    error = "not_found"

    def __init__(self, kind: str, record_id: int) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class ExternalCollaboratorFailure(CyberShieldError):
    """A classifier / geolocation / e-mail dependency failed."""

    status_code = 502
    error = "external_collaborator_failure"

    def __init__(self, collaborator: str, detail: str) -> None:
        super().__init__(f"{collaborator} failed: {detail}")
        self.collaborator = collaborator


class InternalInconsistency(CyberShieldError):
    """A store invariant would be broken. Should never happen."""

    status_code = 500
    error = "internal_inconsistency"
