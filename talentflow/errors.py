"""Exception hierarchy surfaced by the ordering engine and job service."""

from typing import List, Optional


class TalentFlowError(Exception):
    """Base application exception."""

    code = "error"
    http_status = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "retryable": self.retryable}


class InvalidArgument(TalentFlowError):
    """Raised when input fails validation; nothing was written."""

    code = "invalid_argument"
    http_status = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class NotFound(TalentFlowError):
    """Raised when a referenced job does not exist."""

    code = "not_found"
    http_status = 404


class Conflict(TalentFlowError):
    """Raised when the caller's view of a job's order is stale."""

    code = "conflict"
    http_status = 409
    retryable = True


class TransactionFailure(TalentFlowError):
    """Raised when a unit of work did not commit. The store is unchanged."""

    code = "transaction_failure"
    http_status = 500
    retryable = True


class OrderingViolation(TalentFlowError):
    """Raised when stored orders are not exactly 1..N."""

    code = "ordering_violation"
    http_status = 500


class InjectedFault(Exception):
    """Raised by fault injectors to abort a unit of work."""

    def __init__(self, operation: str, stage: str):
        super().__init__(f"Injected fault in {operation} at {stage}")
        self.operation = operation
        self.stage = stage
