"""Tests for the command-line interface."""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest

from utr_recon import cli
from utr_recon.database import (
    Database,
    GatewayConfigRepository,
    OrderRepository,
)


class TestParser:
    """Tests for argument parsing."""

    def test_submit_utr_arguments(self):
        args = cli.create_parser().parse_args(["submit-utr", "--utr", "RRN999999999", "--order-id", "ORD-1"])
        assert args.command == "submit-utr"
        assert args.utr == "RRN999999999"
        assert args.order_id == "ORD-1"

    def test_verify_gateway_requires_id(self):
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args(["verify-gateway"])

    def test_database_url_option(self):
        args = cli.create_parser().parse_args(["--database-url", "sqlite+aiosqlite:///x.db", "init-db"])
        assert args.database_url == "sqlite+aiosqlite:///x.db"

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 1
        assert "utr-recon" in capsys.readouterr().out


class TestCommands:
    """Tests for command execution against a file database."""

    @pytest.fixture
    def database_url(self, tmp_path):
        return f"sqlite+aiosqlite:///{tmp_path / 'recon.db'}"

    def test_init_db(self, database_url, capsys):
        assert cli.main(["--database-url", database_url, "init-db"]) == 0
        assert json.loads(capsys.readouterr().out)["success"] is True

    def test_submit_unknown_order_exits_non_zero(self, database_url, capsys):
        cli.main(["--database-url", database_url, "init-db"])
        capsys.readouterr()

        code = cli.main(["--database-url", database_url, "submit-utr", "--utr", "RRN999999999", "--order-id", "ORD-9"])

        assert code == 1
        output = json.loads(capsys.readouterr().out)
        assert output == {"success": False, "message": "Order not found", "state": "order_not_found"}

    def test_submit_bad_utr(self, database_url, capsys):
        cli.main(["--database-url", database_url, "init-db"])
        capsys.readouterr()

        code = cli.main(["--database-url", database_url, "submit-utr", "--utr", "123", "--order-id", "ORD-1"])

        assert code == 1
        assert json.loads(capsys.readouterr().out)["state"] == "rejected_input"

    def test_verify_missing_gateway(self, database_url, capsys):
        cli.main(["--database-url", database_url, "init-db"])
        capsys.readouterr()

        assert cli.main(["--database-url", database_url, "verify-gateway", "--gateway-id", "nope"]) == 2
        assert json.loads(capsys.readouterr().out)["success"] is False

    def test_verify_presence_gateway(self, database_url, capsys, bharatpe_config):
        import asyncio

        async def seed():
            database = Database(database_url)
            await database.connect()
            async with database.session() as session:
                await GatewayConfigRepository(session).save(bharatpe_config)
                await OrderRepository(session).create("ORD-1", bharatpe_config.id, Decimal("10"))
            await database.disconnect()

        asyncio.run(seed())

        code = cli.main(["--database-url", database_url, "verify-gateway", "--gateway-id", "gw_bharatpe"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "active"
