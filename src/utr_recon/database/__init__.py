"""Database module for reconciliation persistence."""

from .models import (
    Base,
    PaymentGateway,
    Order,
    SettledTransaction,
)
from .session import (
    get_db,
    get_database_url,
    init_db,
    close_db,
    create_async_engine,
    get_db_context,
    Database,
    get_database,
)
from .repository import (
    OrderRepository,
    GatewayConfigRepository,
    SettledTransactionRepository,
)

__all__ = [
    # Models
    "Base",
    "PaymentGateway",
    "Order",
    "SettledTransaction",
    # Session management
    "get_db",
    "get_database_url",
    "init_db",
    "close_db",
    "create_async_engine",
    "get_db_context",
    "Database",
    "get_database",
    # Repositories
    "OrderRepository",
    "GatewayConfigRepository",
    "SettledTransactionRepository",
]
