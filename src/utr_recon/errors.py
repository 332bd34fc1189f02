"""Error taxonomy for the reconciliation engine.

Every error that can end a UTR submission carries the terminal
``SubmissionState`` it maps to, so the service can convert it into a
``SubmissionResult`` without inspecting messages.
"""

from typing import Optional

from .reconciliation.models import SubmissionState


class ReconciliationError(Exception):
    """Base class for failures that terminate a submission."""

    state: SubmissionState = SubmissionState.INTERNAL_ERROR
    default_message = "Failed to submit UTR"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(ReconciliationError):
    """Malformed UTR or order ID. Always local, never retried."""

    state = SubmissionState.REJECTED_INPUT
    default_message = "Invalid input"


class NotFoundError(ReconciliationError):
    """A referenced order or gateway configuration does not exist."""


class OrderNotFoundError(NotFoundError):
    state = SubmissionState.ORDER_NOT_FOUND
    default_message = "Order not found"


class GatewayNotFoundError(NotFoundError):
    state = SubmissionState.GATEWAY_NOT_FOUND
    default_message = "Gateway not found"


class DuplicateUTRError(ReconciliationError):
    """The UTR is already bound to a settled transaction."""

    state = SubmissionState.DUPLICATE_UTR
    default_message = (
        "UTR number already exists. Please verify the UTR number "
        "or contact support if this is an error."
    )


class PersistConflictError(DuplicateUTRError):
    """A concurrent submission settled the same UTR first."""

    state = SubmissionState.PERSIST_CONFLICT


class UpstreamUnavailableError(ReconciliationError):
    """Talking to a provider failed for this attempt."""

    state = SubmissionState.UPSTREAM_UNAVAILABLE
    default_message = "Payment gateway is currently unavailable"

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class GatewayConfigurationError(UpstreamUnavailableError):
    """Credential fields are missing or malformed; nothing was sent upstream."""

    default_message = "Gateway credentials are missing or invalid"


class UnsupportedGatewayError(GatewayConfigurationError):
    """The provider has no ledger API this engine can reconcile against."""

    def __init__(self, provider: str, message: Optional[str] = None):
        super().__init__(provider, message or f"Unsupported gateway type: {provider}")


class NoTransactionsError(ReconciliationError):
    """The provider ledger is empty for the lookback window."""

    state = SubmissionState.NO_TRANSACTIONS
    default_message = "No transactions found from gateway. Please try again later."


class NoMatchError(ReconciliationError):
    """The ledger was fetched but does not contain the UTR."""

    state = SubmissionState.NO_MATCH
    default_message = (
        "Transaction with provided UTR number not found in gateway "
        "transactions. Please verify the UTR number."
    )


class DuplicateSettlementError(Exception):
    """Raised by a transaction store when a unique constraint is violated."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Settled transaction with {field}={value!r} already exists")
