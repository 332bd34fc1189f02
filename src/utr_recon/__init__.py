"""UTR reconciler.

Confirms UPI payments by matching a payer-reported UTR against the ledger
of the merchant's payment gateway (Razorpay, Paytm, BharatPe, Stripe).
"""

from .reconciliation import (
    ReconciliationService,
    GatewayVerificationService,
    SubmissionResult,
    SubmissionState,
)
from .gateways import get_gateway_adapter, verify_gateway_config
from .config import GatewaySettings

__version__ = "0.1.0"

__all__ = [
    "ReconciliationService",
    "GatewayVerificationService",
    "SubmissionResult",
    "SubmissionState",
    "get_gateway_adapter",
    "verify_gateway_config",
    "GatewaySettings",
]
