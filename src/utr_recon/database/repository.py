"""Repository layer for reconciliation persistence.

Each repository implements the matching store interface from
``utr_recon.reconciliation.stores`` and hands out pydantic models, never
ORM rows.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import DuplicateSettlementError
from ..gateways import parse_credentials
from ..reconciliation.models import (
    GatewayConfig,
    GatewayStatus,
    GatewayType,
    Order,
    SettlementRecord,
    TransactionStatus,
)
from .models import PaymentGateway, Order as OrderRow, SettledTransaction

logger = logging.getLogger(__name__)


def _gateway_to_model(row: PaymentGateway) -> GatewayConfig:
    return GatewayConfig(
        id=row.id,
        name=row.name,
        type=GatewayType(row.type),
        merchant_id=row.merchant_id,
        upi_id=row.upi_id,
        api_key=row.api_key,
        api_details=row.api_details,
        status=GatewayStatus(row.status),
        created_by=row.created_by,
    )


def _settlement_to_model(row: SettledTransaction) -> SettlementRecord:
    return SettlementRecord(
        transaction_id=row.transaction_id,
        amount=row.amount,
        gateway_id=row.gateway_id,
        customer_email=row.customer_email,
        status=TransactionStatus(row.status),
        utr_number=row.utr_number,
        gateway_transaction_data=row.gateway_transaction_data,
        payment_method=row.payment_method,
        created_by=row.created_by,
        created_at=row.created_at,
    )


class OrderRepository:
    """Repository for Order lookups."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def create(
        self,
        order_id: str,
        gateway_id: str,
        amount: Decimal,
        customer_email: Optional[str] = None,
        **fields,
    ) -> Order:
        """Create an order bound to a gateway configuration.

        Args:
            order_id: Public order ID.
            gateway_id: Gateway configuration ID.
            amount: Declared amount in major units.
            customer_email: Optional customer email.
            **fields: Other optional order columns (customer_name, udf1, ...).

        Returns:
            Created Order.
        """
        row = OrderRow(
            order_id=order_id,
            gateway_id=gateway_id,
            amount=amount,
            customer_email=customer_email,
            **fields,
        )
        self.session.add(row)
        await self.session.flush()

        logger.info(f"Created order {order_id} on gateway {gateway_id}")
        return Order.model_validate(row)

    async def find_by_order_id(self, order_id: str) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderRow).where(OrderRow.order_id == order_id)
        )
        row = result.scalar_one_or_none()
        return Order.model_validate(row) if row else None


class GatewayConfigRepository:
    """Repository for gateway configurations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, gateway_id: str) -> Optional[GatewayConfig]:
        row = await self.session.get(PaymentGateway, gateway_id)
        return _gateway_to_model(row) if row else None

    async def save(self, config: GatewayConfig) -> GatewayConfig:
        """Insert or update a gateway configuration.

        Args:
            config: Configuration to store.

        Returns:
            The stored configuration.

        Raises:
            GatewayConfigurationError: If the configuration is marked active
                but its credentials do not parse for its provider.
        """
        if config.status == GatewayStatus.ACTIVE:
            parse_credentials(config)

        row = await self.session.get(PaymentGateway, config.id)
        if row is None:
            row = PaymentGateway(id=config.id)
            self.session.add(row)

        row.name = config.name
        row.type = config.type.value
        row.merchant_id = config.merchant_id
        row.upi_id = config.upi_id
        row.api_key = config.api_key
        row.api_details = config.api_details
        row.status = config.status.value
        row.created_by = config.created_by

        await self.session.flush()
        logger.info(f"Saved gateway {config.id} with status {config.status.value}")
        return config


class SettledTransactionRepository:
    """Repository for settled transactions.

    Uniqueness of ``utr_number`` is enforced by the table itself, so a
    losing concurrent insert surfaces as ``DuplicateSettlementError``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists_by_utr(self, utr_number: str) -> bool:
        result = await self.session.execute(
            select(SettledTransaction.id).where(SettledTransaction.utr_number == utr_number)
        )
        return result.first() is not None

    async def get_by_utr(self, utr_number: str) -> Optional[SettlementRecord]:
        result = await self.session.execute(
            select(SettledTransaction).where(SettledTransaction.utr_number == utr_number)
        )
        row = result.scalar_one_or_none()
        return _settlement_to_model(row) if row else None

    async def create(self, record: SettlementRecord) -> SettlementRecord:
        """Insert a settled transaction.

        Args:
            record: Settlement to persist.

        Returns:
            The persisted record.

        Raises:
            DuplicateSettlementError: If the UTR or transaction ID is taken.
            IntegrityError: For any other constraint violation.
        """
        row = SettledTransaction(
            transaction_id=record.transaction_id,
            amount=record.amount,
            gateway_id=record.gateway_id,
            customer_email=record.customer_email,
            status=record.status.value,
            utr_number=record.utr_number,
            payment_method=record.payment_method,
            created_by=record.created_by,
            created_at=record.created_at,
        )
        row.gateway_transaction_data = record.gateway_transaction_data
        self.session.add(row)

        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            # SQLite names the column, PostgreSQL the constraint; both contain it
            detail = str(e.orig)
            if "utr_number" in detail:
                raise DuplicateSettlementError("utr_number", record.utr_number) from e
            if "transaction_id" in detail:
                raise DuplicateSettlementError("transaction_id", record.transaction_id) from e
            raise

        logger.info(f"Created settled transaction {record.transaction_id} for UTR {record.utr_number}")
        return _settlement_to_model(row)
