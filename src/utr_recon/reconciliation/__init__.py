"""UTR reconciliation engine.

Given a UTR and an order, query the order's gateway account, find the
ledger entry carrying that UTR and record it as a settled transaction,
exactly once.

Features:
- Per-provider ledger fetching and field normalization
- Exact UTR matching with a first-in-ledger tie-break
- Duplicate protection backed by the store's unique constraint
- Gateway credential verification
"""

from .models import (
    GatewayType,
    GatewayStatus,
    TransactionStatus,
    SubmissionState,
    GatewayConfig,
    Order,
    FetchWindow,
    CanonicalTransaction,
    SettlementRecord,
    SubmissionResult,
    VerificationResult,
)
from .normalizer import (
    NormalizationRule,
    NORMALIZATION_RULES,
    convert_amount,
    extract_utr,
    normalize_transaction,
    normalize_transactions,
)
from .matcher import UTRMatcher
from .stores import (
    OrderStore,
    GatewayConfigStore,
    TransactionStore,
    InMemoryOrderStore,
    InMemoryGatewayConfigStore,
    InMemoryTransactionStore,
)
from .idempotency import IdempotencyGuard, UTRLockRegistry
from .service import ReconciliationService
from .verification import GatewayVerificationService, merge_credentials

__all__ = [
    # Models
    "GatewayType",
    "GatewayStatus",
    "TransactionStatus",
    "SubmissionState",
    "GatewayConfig",
    "Order",
    "FetchWindow",
    "CanonicalTransaction",
    "SettlementRecord",
    "SubmissionResult",
    "VerificationResult",
    # Normalization and matching
    "NormalizationRule",
    "NORMALIZATION_RULES",
    "convert_amount",
    "extract_utr",
    "normalize_transaction",
    "normalize_transactions",
    "UTRMatcher",
    # Stores
    "OrderStore",
    "GatewayConfigStore",
    "TransactionStore",
    "InMemoryOrderStore",
    "InMemoryGatewayConfigStore",
    "InMemoryTransactionStore",
    # Core Components
    "IdempotencyGuard",
    "UTRLockRegistry",
    "ReconciliationService",
    "GatewayVerificationService",
    "merge_credentials",
]
