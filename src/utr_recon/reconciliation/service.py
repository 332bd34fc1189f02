"""Service layer for UTR submissions."""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..config import GatewaySettings
from ..errors import (
    DuplicateSettlementError,
    GatewayNotFoundError,
    InputValidationError,
    NoMatchError,
    NoTransactionsError,
    OrderNotFoundError,
    PersistConflictError,
    ReconciliationError,
    UpstreamUnavailableError,
)
from ..gateways import GatewayAdapter, get_gateway_adapter
from .idempotency import IdempotencyGuard, UTRLockRegistry
from .matcher import UTRMatcher
from .models import (
    CanonicalTransaction,
    GatewayConfig,
    GatewayType,
    Order,
    SettlementRecord,
    SubmissionResult,
    SubmissionState,
    TransactionStatus,
)
from .stores import GatewayConfigStore, OrderStore, TransactionStore

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[GatewayType], GatewayAdapter]

SUCCESS_MESSAGE = "UTR submitted successfully"
INTERNAL_ERROR_MESSAGE = "Failed to submit UTR"


class ReconciliationService:
    """Confirms a customer payment by matching a UTR against the gateway ledger.

    A submission walks RECEIVED -> VALIDATED -> ORDER_RESOLVED -> DEDUPED ->
    FETCHED -> MATCHED -> PERSISTED, leaving early on the first failure.
    ``submit_utr`` is the single place where failures become results; no
    step is retried here.
    """

    def __init__(
        self,
        order_store: OrderStore,
        gateway_store: GatewayConfigStore,
        transaction_store: TransactionStore,
        settings: Optional[GatewaySettings] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        lock_registry: Optional[UTRLockRegistry] = None,
    ):
        """Initialize the reconciliation service.

        Args:
            order_store: Lookup of orders by public order ID.
            gateway_store: Lookup of gateway configurations by ID.
            transaction_store: Settled transactions, unique on UTR.
            settings: Gateway settings. Defaults to ``GatewaySettings.from_env()``.
            adapter_factory: Optional factory returning the adapter for a
                provider. Defaults to ``get_gateway_adapter``.
            http_client: Optional shared HTTP client handed to adapters.
            lock_registry: Per-UTR locks, for transaction stores that lack
                an atomic unique insert.
        """
        self.order_store = order_store
        self.gateway_store = gateway_store
        self.transaction_store = transaction_store
        self.settings = settings or GatewaySettings.from_env()
        self.guard = IdempotencyGuard(transaction_store, lock_registry)
        self.matcher = UTRMatcher()
        self._adapter_factory = adapter_factory
        self._http_client = http_client

    @classmethod
    def from_session(cls, session, **kwargs) -> "ReconciliationService":
        """Build a service backed by the SQL repositories.

        Args:
            session: Async database session.
            **kwargs: Passed through to the constructor.
        """
        from ..database import (
            GatewayConfigRepository,
            OrderRepository,
            SettledTransactionRepository,
        )
        return cls(
            order_store=OrderRepository(session),
            gateway_store=GatewayConfigRepository(session),
            transaction_store=SettledTransactionRepository(session),
            **kwargs,
        )

    def _get_adapter(self, gateway_type: GatewayType) -> GatewayAdapter:
        if self._adapter_factory is not None:
            return self._adapter_factory(gateway_type)
        return get_gateway_adapter(gateway_type, settings=self.settings, client=self._http_client)

    def validate(self, utr_number: Optional[str], order_id: Optional[str]) -> str:
        """Check the raw inputs and return the trimmed UTR.

        Raises:
            InputValidationError: If the UTR is empty or not exactly
                ``utr_length`` characters, or the order ID is missing.
        """
        if not utr_number or not utr_number.strip():
            raise InputValidationError("UTR number is required")
        utr = utr_number.strip()
        if len(utr) != self.settings.utr_length:
            raise InputValidationError(
                f"UTR number must be exactly {self.settings.utr_length} characters"
            )
        if not order_id or not order_id.strip():
            raise InputValidationError("Order ID is required")
        return utr

    async def resolve_order(self, order_id: str) -> tuple[Order, GatewayConfig]:
        """Load the order and the gateway configuration it is bound to.

        Raises:
            OrderNotFoundError: If no order has this ID.
            GatewayNotFoundError: If the bound configuration is absent.
        """
        order = await self.order_store.find_by_order_id(order_id)
        if order is None:
            raise OrderNotFoundError()
        gateway = await self.gateway_store.find_by_id(order.gateway_id)
        if gateway is None:
            raise GatewayNotFoundError()
        return order, gateway

    def build_settlement(
        self,
        matched: CanonicalTransaction,
        order: Order,
        gateway: GatewayConfig,
        utr: str,
    ) -> SettlementRecord:
        try:
            status = TransactionStatus(matched.status)
        except ValueError:
            logger.warning(
                f"Gateway status {matched.status!r} for {matched.id} is not a settlement "
                f"status; storing as pending"
            )
            status = TransactionStatus.PENDING

        return SettlementRecord(
            amount=matched.amount,
            gateway_id=gateway.id,
            customer_email=order.customer_email,
            status=status,
            utr_number=utr,
            gateway_transaction_data=matched.raw_data,
            created_by=gateway.created_by,
        )

    def _check_dropped_entries(
        self,
        adapter: GatewayAdapter,
        records: List[Dict[str, Any]],
        transactions: List[CanonicalTransaction],
        utr: str,
        order_id: str,
    ) -> None:
        """Raise if the UTR may sit in an entry that failed to normalize.

        Raises:
            UpstreamUnavailableError: If every entry was unreadable, or an
                unreadable entry carries the submitted UTR.
        """
        provider = adapter.gateway_type.value
        if not transactions:
            logger.error(f"All {len(records)} {provider} entries for order {order_id} were malformed")
            raise UpstreamUnavailableError(
                provider, f"Failed to read {adapter.display_name} transactions: malformed response"
            )
        if any(adapter.extract_utr(record) == utr for record in records):
            logger.error(f"{provider} entry carrying UTR {utr} is malformed (order {order_id})")
            raise UpstreamUnavailableError(
                provider, f"Malformed {adapter.display_name} transaction for the provided UTR"
            )

    async def _reconcile(self, utr_number: Optional[str], order_id: Optional[str]) -> SettlementRecord:
        utr = self.validate(utr_number, order_id)
        order_id = order_id.strip()

        order, gateway = await self.resolve_order(order_id)
        logger.info(f"Resolved order {order_id} to {gateway.type.value} gateway {gateway.id}")

        async with self.guard.claim(utr):
            await self.guard.ensure_unclaimed(utr)

            adapter = self._get_adapter(gateway.type)
            logger.info(
                f"Fetching transactions from {gateway.type.value} for UTR verification "
                f"(order {order_id})"
            )
            records = await adapter.fetch_transactions(gateway, order)
            if not records:
                logger.warning(f"No transactions found from {gateway.type.value} for order {order_id}")
                raise NoTransactionsError()

            transactions = adapter.normalize_all(records)
            matched = self.matcher.match(transactions, utr)
            if matched is None:
                self._check_dropped_entries(adapter, records, transactions, utr, order_id)
                logger.warning(
                    f"UTR {utr} not found among {len(transactions)} {gateway.type.value} "
                    f"transactions for order {order_id}"
                )
                raise NoMatchError()

            logger.info(
                f"UTR {utr} verified against {gateway.type.value} transaction {matched.id} "
                f"(order {order_id})"
            )

            record = self.build_settlement(matched, order, gateway, utr)
            try:
                return await self.transaction_store.create(record)
            except DuplicateSettlementError as e:
                logger.warning(f"Settlement for UTR {utr} lost a concurrent race: {e}")
                raise PersistConflictError() from e

    async def submit_utr(self, utr_number: Optional[str], order_id: Optional[str]) -> SubmissionResult:
        """Reconcile a submitted UTR against an order's gateway.

        Args:
            utr_number: UTR as submitted by the customer or merchant.
            order_id: Public ID of the order being paid.

        Returns:
            SubmissionResult. ``success`` is True only when a settled
            transaction was created by this call.
        """
        logger.info(f"Starting UTR submission for order {order_id}")
        try:
            record = await self._reconcile(utr_number, order_id)
        except ReconciliationError as e:
            logger.info(f"UTR submission for order {order_id} ended in {e.state.value}: {e.message}")
            return SubmissionResult(success=False, message=e.message, state=e.state)
        except Exception:
            logger.exception(f"Unexpected error in UTR submission for order {order_id}")
            return SubmissionResult(
                success=False,
                message=INTERNAL_ERROR_MESSAGE,
                state=SubmissionState.INTERNAL_ERROR,
            )

        logger.info(
            f"UTR {record.utr_number} settled as transaction {record.transaction_id} "
            f"for order {order_id}"
        )
        return SubmissionResult(
            success=True,
            message=SUCCESS_MESSAGE,
            state=SubmissionState.PERSISTED,
            transaction_id=record.transaction_id,
        )
