"""Store interfaces the reconciliation engine depends on.

The SQLAlchemy repositories in ``utr_recon.database`` implement these for
production use. The in-memory variants below serve embedding and tests.
"""

import copy
from typing import Dict, Optional, Protocol

from ..errors import DuplicateSettlementError
from .models import GatewayConfig, Order, SettlementRecord


class OrderStore(Protocol):
    async def find_by_order_id(self, order_id: str) -> Optional[Order]:
        ...


class GatewayConfigStore(Protocol):
    async def find_by_id(self, gateway_id: str) -> Optional[GatewayConfig]:
        ...

    async def save(self, config: GatewayConfig) -> GatewayConfig:
        ...


class TransactionStore(Protocol):
    async def exists_by_utr(self, utr_number: str) -> bool:
        ...

    async def create(self, record: SettlementRecord) -> SettlementRecord:
        """Insert a settled transaction.

        Raises:
            DuplicateSettlementError: If the UTR or transaction ID already exists.
        """
        ...


class InMemoryOrderStore:
    def __init__(self, orders: Optional[Dict[str, Order]] = None):
        self._orders: Dict[str, Order] = dict(orders or {})

    def add(self, order: Order) -> Order:
        self._orders[order.order_id] = order
        return order

    async def find_by_order_id(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)


class InMemoryGatewayConfigStore:
    def __init__(self, configs: Optional[Dict[str, GatewayConfig]] = None):
        self._configs: Dict[str, GatewayConfig] = dict(configs or {})

    def add(self, config: GatewayConfig) -> GatewayConfig:
        self._configs[config.id] = config
        return config

    async def find_by_id(self, gateway_id: str) -> Optional[GatewayConfig]:
        config = self._configs.get(gateway_id)
        # callers get a copy so an adapter can never mutate the stored bundle
        return config.model_copy(deep=True) if config else None

    async def save(self, config: GatewayConfig) -> GatewayConfig:
        self._configs[config.id] = config.model_copy(deep=True)
        return config


class InMemoryTransactionStore:
    """Append-only settlement store with unique UTR and transaction ID.

    ``create`` checks and inserts without awaiting in between, which makes
    it atomic on a single event loop.
    """

    def __init__(self):
        self._by_utr: Dict[str, SettlementRecord] = {}
        self._by_id: Dict[str, SettlementRecord] = {}

    @property
    def records(self):
        return list(self._by_utr.values())

    async def exists_by_utr(self, utr_number: str) -> bool:
        return utr_number in self._by_utr

    async def create(self, record: SettlementRecord) -> SettlementRecord:
        if record.utr_number in self._by_utr:
            raise DuplicateSettlementError("utr_number", record.utr_number)
        if record.transaction_id in self._by_id:
            raise DuplicateSettlementError("transaction_id", record.transaction_id)
        stored = copy.deepcopy(record)
        self._by_utr[stored.utr_number] = stored
        self._by_id[stored.transaction_id] = stored
        return stored
