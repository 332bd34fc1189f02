"""Models for UTR reconciliation."""

import enum
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field


class GatewayType(str, enum.Enum):
    """Upstream payment providers a gateway configuration can point at."""
    RAZORPAY = "razorpay"
    PAYTM = "paytm"
    BHARATPE = "bharatpe"
    STRIPE = "stripe"
    PAYPAL = "paypal"
    SQUARE = "square"


class GatewayStatus(str, enum.Enum):
    """Operational status of a gateway configuration."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class TransactionStatus(str, enum.Enum):
    """Statuses a settled transaction may be stored with."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class SubmissionState(str, enum.Enum):
    """States of a single UTR submission.

    PERSISTED is the only successful terminal state.
    """
    RECEIVED = "received"
    VALIDATED = "validated"
    ORDER_RESOLVED = "order_resolved"
    DEDUPED = "deduped"
    FETCHED = "fetched"
    MATCHED = "matched"
    PERSISTED = "persisted"

    REJECTED_INPUT = "rejected_input"
    ORDER_NOT_FOUND = "order_not_found"
    GATEWAY_NOT_FOUND = "gateway_not_found"
    DUPLICATE_UTR = "duplicate_utr"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    NO_TRANSACTIONS = "no_transactions"
    NO_MATCH = "no_match"
    PERSIST_CONFLICT = "persist_conflict"
    INTERNAL_ERROR = "internal_error"


class GatewayConfig(BaseModel):
    """One merchant's credentials for one upstream provider."""
    id: str = Field(..., description="Gateway configuration ID")
    name: str = Field(default="", description="Display name")
    type: GatewayType = Field(..., description="Upstream provider")
    merchant_id: str = Field(default="", description="Merchant ID at the provider")
    upi_id: str = Field(default="", description="UPI VPA collecting payments")
    api_key: str = Field(default="", description="Provider API key")
    api_details: Dict[str, str] = Field(
        default_factory=dict,
        description="Open credential bundle (apiToken, apiSecret, tr, accesskeyId, merchantKey, cookie, xsrf)",
    )
    status: GatewayStatus = Field(default=GatewayStatus.INACTIVE)
    created_by: Optional[str] = Field(None, description="User that owns the configuration")

    class Config:
        from_attributes = True


class Order(BaseModel):
    """A payment request awaiting settlement."""
    order_id: str = Field(..., description="Public order ID")
    gateway_id: str = Field(..., description="Bound gateway configuration ID")
    amount: Decimal = Field(..., description="Declared amount in major units")
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    redirect_url: Optional[str] = None
    udf1: Optional[str] = None
    udf2: Optional[str] = None
    udf3: Optional[str] = None
    status: Optional[str] = None

    class Config:
        from_attributes = True


class FetchWindow(BaseModel):
    """Lookback interval used when searching a provider ledger."""
    start_time: datetime
    end_time: datetime

    @classmethod
    def lookback(cls, hours: float, now: Optional[datetime] = None) -> "FetchWindow":
        end = now or datetime.now(timezone.utc)
        return cls(start_time=end - timedelta(hours=hours), end_time=end)


class CanonicalTransaction(BaseModel):
    """Provider-agnostic view of one ledger entry."""
    id: str = Field(..., description="Native transaction ID")
    amount: Decimal = Field(..., description="Amount in the order's major unit")
    status: str = Field(..., description="Provider-reported status")
    utr: Optional[str] = Field(None, description="UTR-equivalent reference")
    raw_data: Dict[str, Any] = Field(default_factory=dict, description="Raw provider payload")


class SettlementRecord(BaseModel):
    """Durable record of a successfully reconciled payment."""
    transaction_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    amount: Decimal
    gateway_id: str
    customer_email: Optional[str] = None
    status: TransactionStatus = TransactionStatus.PENDING
    utr_number: str
    gateway_transaction_data: Dict[str, Any] = Field(default_factory=dict)
    payment_method: str = "UPI"
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True


class SubmissionResult(BaseModel):
    """Outcome of a UTR submission."""
    success: bool
    message: str
    state: SubmissionState
    transaction_id: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        """Return the public ``{success, message}`` shape."""
        return {"success": self.success, "message": self.message}


class VerificationResult(BaseModel):
    """Outcome of a gateway health check."""
    status: GatewayStatus
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == GatewayStatus.ACTIVE
