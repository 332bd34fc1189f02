"""SQLAlchemy models for reconciliation persistence."""

import uuid
import json
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Numeric,
    Text,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..reconciliation.models import GatewayStatus, TransactionStatus


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class PaymentGateway(Base):
    """A merchant's credentials for one upstream provider."""
    __tablename__ = "payment_gateways"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    merchant_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    upi_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    api_key: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=GatewayStatus.INACTIVE.value)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    # Credential bundle stored as JSON
    api_details_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def api_details(self) -> Dict[str, str]:
        if self.api_details_json:
            return json.loads(self.api_details_json)
        return {}

    @api_details.setter
    def api_details(self, value: Optional[Dict[str, str]]) -> None:
        self.api_details_json = json.dumps(value) if value else None


class Order(Base):
    """A payment request bound to one gateway configuration."""
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    gateway_id: Mapped[str] = mapped_column(String(36), ForeignKey("payment_gateways.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    redirect_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    udf1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    udf2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    udf3: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class SettledTransaction(Base):
    """A reconciled payment. At most one row per UTR."""
    __tablename__ = "settled_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    transaction_id: Mapped[str] = mapped_column(String(36), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    gateway_id: Mapped[str] = mapped_column(String(36), ForeignKey("payment_gateways.id"), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TransactionStatus.PENDING.value)
    utr_number: Mapped[str] = mapped_column(String(64), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="UPI")
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Raw provider payload for audit
    gateway_transaction_data_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("utr_number", name="uq_settled_transactions_utr_number"),
        UniqueConstraint("transaction_id", name="uq_settled_transactions_transaction_id"),
        Index("ix_settled_transactions_gateway_id", "gateway_id"),
        Index("ix_settled_transactions_created_at", "created_at"),
    )

    @property
    def gateway_transaction_data(self) -> Dict[str, Any]:
        if self.gateway_transaction_data_json:
            return json.loads(self.gateway_transaction_data_json)
        return {}

    @gateway_transaction_data.setter
    def gateway_transaction_data(self, value: Optional[Dict[str, Any]]) -> None:
        if value is not None:
            # provider payloads may carry Decimals or datetimes
            self.gateway_transaction_data_json = json.dumps(value, default=str)
        else:
            self.gateway_transaction_data_json = None
