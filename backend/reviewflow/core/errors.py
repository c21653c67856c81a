"""
Workflow error taxonomy.

All errors inherit from WorkflowError so the API layer can translate them
with a single exception handler. ``retryable`` marks the errors a caller may
safely retry; the engine itself never retries.
"""


class WorkflowError(Exception):
    """Base exception for all workflow failures."""

    code = "WORKFLOW_ERROR"
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(WorkflowError):
    """Malformed descriptor, missing required fields or invalid values."""

    code = "VALIDATION_ERROR"
    status_code = 422


class PayloadUnavailableError(ValidationError):
    """A payload or attachment reference could not be confirmed available."""

    code = "PAYLOAD_UNAVAILABLE"

    def __init__(self, ref: str, reason: str = "reference could not be confirmed"):
        self.ref = ref
        super().__init__(f"Payload '{ref}' unavailable: {reason}")


class NotFoundError(WorkflowError):
    """Raised when an entity cannot be found."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class ExpiredLinkError(WorkflowError):
    """The review link is past its expiry."""

    code = "LINK_EXPIRED"
    status_code = 410

    def __init__(self, message: str = "Review link has expired"):
        super().__init__(message)


class InactiveLinkError(WorkflowError):
    """The review link was deactivated (superseded or revoked)."""

    code = "LINK_INACTIVE"
    status_code = 410

    def __init__(self, message: str = "Review link is no longer active"):
        super().__init__(message)


class StateTransitionError(WorkflowError):
    """Raised when attempting an operation not legal in the current state."""

    code = "INVALID_STATE_TRANSITION"
    status_code = 409

    def __init__(self, message: str, current_state: str | None = None, event: str | None = None):
        self.current_state = current_state
        self.event = event
        super().__init__(message)


class ConcurrencyConflict(WorkflowError):
    """Another request changed the same row first. Safe to retry."""

    code = "CONCURRENCY_CONFLICT"
    status_code = 409
    retryable = True

    def __init__(self, message: str = "Concurrent modification detected, please retry"):
        super().__init__(message)
