"""Tests for the SQL repositories."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from conftest import json_handler, mock_client
from utr_recon.database import (
    Database,
    GatewayConfigRepository,
    OrderRepository,
    SettledTransaction,
    SettledTransactionRepository,
    create_async_engine,
    get_database_url,
)
from utr_recon.errors import DuplicateSettlementError, DuplicateUTRError, GatewayConfigurationError
from utr_recon.gateways import RazorpayAdapter
from utr_recon.reconciliation import (
    GatewayStatus,
    ReconciliationService,
    SettlementRecord,
    SubmissionState,
    TransactionStatus,
)


@pytest.fixture
async def seeded_session(db_session, razorpay_config):
    await GatewayConfigRepository(db_session).save(razorpay_config)
    await OrderRepository(db_session).create(
        order_id="ORD-1",
        gateway_id=razorpay_config.id,
        amount=Decimal("1500.00"),
        customer_email="payer@example.com",
    )
    return db_session


@pytest.fixture
async def file_database(tmp_path, razorpay_config):
    """A seeded SQLite file database, as the API and CLI use by default."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'recon.db'}")
    await db.connect()
    async with db.session() as session:
        await GatewayConfigRepository(session).save(razorpay_config)
        await OrderRepository(session).create(
            order_id="ORD-1",
            gateway_id=razorpay_config.id,
            amount=Decimal("1500.00"),
            customer_email="payer@example.com",
        )
    yield db
    await db.disconnect()


async def _count_settlements(database):
    async with database.session() as session:
        result = await session.execute(select(func.count()).select_from(SettledTransaction))
        return result.scalar_one()


def _record(**overrides):
    values = dict(
        amount=Decimal("1500.00"),
        gateway_id="gw_razorpay",
        status=TransactionStatus.SUCCESS,
        utr_number="RRN999999999",
        gateway_transaction_data={"id": "pay_1", "acquirer_data": {"rrn": "RRN999999999"}},
    )
    values.update(overrides)
    return SettlementRecord(**values)


class TestDatabaseUrl:
    """Tests for get_database_url."""

    def test_postgres_is_rewritten(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/recon")
        assert get_database_url() == "postgresql+asyncpg://u:p@db/recon"

    def test_default_is_sqlite(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert get_database_url().startswith("sqlite+aiosqlite://")


class TestEngine:
    """Tests for engine and session lifecycle."""

    async def test_only_memory_sqlite_is_pinned_to_one_connection(self, tmp_path):
        memory = create_async_engine("sqlite+aiosqlite:///:memory:")
        on_disk = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
        try:
            assert isinstance(memory.sync_engine.pool, StaticPool)
            assert not isinstance(on_disk.sync_engine.pool, StaticPool)
        finally:
            await memory.dispose()
            await on_disk.dispose()

    async def test_concurrent_sessions_do_not_share_a_transaction(self, file_database):
        async with file_database.session() as writer:
            await SettledTransactionRepository(writer).create(_record())

            async with file_database.session() as reader:
                assert await SettledTransactionRepository(reader).exists_by_utr("RRN999999999") is False
                await reader.rollback()

        assert await _count_settlements(file_database) == 1

    async def test_session_rolls_back_on_error(self, file_database):
        with pytest.raises(RuntimeError):
            async with file_database.session() as session:
                await SettledTransactionRepository(session).create(_record())
                raise RuntimeError("abort")

        assert await _count_settlements(file_database) == 0

    async def test_session_before_connect(self):
        with pytest.raises(RuntimeError):
            async with Database("sqlite+aiosqlite:///:memory:").session():
                pass


class TestOrderRepository:
    """Tests for OrderRepository."""

    async def test_find(self, seeded_session):
        order = await OrderRepository(seeded_session).find_by_order_id("ORD-1")
        assert order.gateway_id == "gw_razorpay"
        assert order.amount == Decimal("1500.00")

    async def test_missing(self, seeded_session):
        assert await OrderRepository(seeded_session).find_by_order_id("ORD-X") is None


class TestGatewayConfigRepository:
    """Tests for GatewayConfigRepository."""

    async def test_round_trip(self, seeded_session, razorpay_config):
        stored = await GatewayConfigRepository(seeded_session).find_by_id("gw_razorpay")
        assert stored == razorpay_config

    async def test_update_status(self, seeded_session, razorpay_config):
        repo = GatewayConfigRepository(seeded_session)
        await repo.save(razorpay_config.model_copy(update={"status": GatewayStatus.INACTIVE}))
        assert (await repo.find_by_id("gw_razorpay")).status == GatewayStatus.INACTIVE

    async def test_active_with_bad_credentials_is_refused(self, seeded_session, razorpay_config):
        repo = GatewayConfigRepository(seeded_session)
        with pytest.raises(GatewayConfigurationError):
            await repo.save(razorpay_config.model_copy(update={"api_details": {"apiSecret": "bad"}}))
        assert (await repo.find_by_id("gw_razorpay")).api_details == razorpay_config.api_details

    async def test_inactive_with_bad_credentials_is_allowed(self, seeded_session, razorpay_config):
        repo = GatewayConfigRepository(seeded_session)
        await repo.save(razorpay_config.model_copy(update={
            "api_details": {"apiSecret": "bad"},
            "status": GatewayStatus.INACTIVE,
        }))
        assert (await repo.find_by_id("gw_razorpay")).api_details == {"apiSecret": "bad"}


class TestSettledTransactionRepository:
    """Tests for SettledTransactionRepository."""

    async def test_create_and_exists(self, seeded_session):
        repo = SettledTransactionRepository(seeded_session)
        assert await repo.exists_by_utr("RRN999999999") is False

        created = await repo.create(_record())

        assert await repo.exists_by_utr("RRN999999999") is True
        assert created.amount == Decimal("1500.00")
        assert created.gateway_transaction_data["acquirer_data"]["rrn"] == "RRN999999999"
        stored = await repo.get_by_utr("RRN999999999")
        assert stored.transaction_id == created.transaction_id

    async def test_duplicate_utr_is_rejected(self, seeded_session):
        repo = SettledTransactionRepository(seeded_session)
        await repo.create(_record())
        await seeded_session.commit()

        with pytest.raises(DuplicateSettlementError) as exc:
            await repo.create(_record())
        assert exc.value.field == "utr_number"
        assert await repo.exists_by_utr("RRN999999999") is True

    async def test_duplicate_transaction_id_is_rejected(self, seeded_session):
        repo = SettledTransactionRepository(seeded_session)
        await repo.create(_record(transaction_id="txn-1"))
        await seeded_session.commit()

        with pytest.raises(DuplicateSettlementError) as exc:
            await repo.create(_record(transaction_id="txn-1", utr_number="RRN111111111"))
        assert exc.value.field == "transaction_id"

    async def test_other_integrity_errors_propagate(self):
        session = MagicMock()
        session.flush = AsyncMock(side_effect=IntegrityError(
            "INSERT INTO settled_transactions", {}, Exception("FOREIGN KEY constraint failed")
        ))
        session.rollback = AsyncMock()

        with pytest.raises(IntegrityError):
            await SettledTransactionRepository(session).create(_record(gateway_id="gw_missing"))
        session.rollback.assert_awaited_once()


class TestServiceWithDatabase:
    """The service running on the SQL repositories."""

    async def test_submit_and_duplicate(self, seeded_session, settings, razorpay_payment):
        client = mock_client(json_handler({"items": [razorpay_payment]}))
        service = ReconciliationService.from_session(seeded_session, settings=settings, http_client=client)

        first = await service.submit_utr("RRN999999999", "ORD-1")
        second = await service.submit_utr("RRN999999999", "ORD-1")

        assert first.state == SubmissionState.PERSISTED
        assert second.state == SubmissionState.DUPLICATE_UTR
        stored = await SettledTransactionRepository(seeded_session).get_by_utr("RRN999999999")
        assert stored.transaction_id == first.transaction_id
        assert stored.customer_email == "payer@example.com"

    async def test_insert_race_lost_to_another_session(self, file_database, settings, razorpay_payment):
        class CompetingSettlementAdapter(RazorpayAdapter):
            """Another session settles the UTR while the ledger is being fetched."""

            async def fetch_transactions(self, config, order, window=None):
                async with file_database.session() as other:
                    await SettledTransactionRepository(other).create(_record(transaction_id="competing"))
                return [razorpay_payment]

        adapter = CompetingSettlementAdapter(settings)
        async with file_database.session() as session:
            service = ReconciliationService.from_session(
                session, settings=settings, adapter_factory=lambda gateway_type: adapter
            )
            result = await service.submit_utr("RRN999999999", "ORD-1")

        assert result.success is False
        assert result.state == SubmissionState.PERSIST_CONFLICT
        assert result.message == DuplicateUTRError().message
        assert await _count_settlements(file_database) == 1
        async with file_database.session() as session:
            stored = await SettledTransactionRepository(session).get_by_utr("RRN999999999")
        assert stored.transaction_id == "competing"
