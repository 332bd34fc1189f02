"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from conftest import json_handler, mock_client
from utr_recon.api import (
    STATUS_CODES,
    app,
    get_reconciliation_service,
    get_verification_service,
)
from utr_recon.reconciliation import (
    GatewayStatus,
    GatewayVerificationService,
    ReconciliationService,
    SubmissionState,
)

AUTH = {"Authorization": "Bearer test_api_key_12345"}


@pytest.fixture
def client(settings, order_store, gateway_store, transaction_store, razorpay_payment):
    http = mock_client(json_handler({"items": [razorpay_payment]}))
    service = ReconciliationService(
        order_store, gateway_store, transaction_store, settings=settings, http_client=http
    )
    verifier = GatewayVerificationService(gateway_store, settings, http)
    app.dependency_overrides[get_reconciliation_service] = lambda: service
    app.dependency_overrides[get_verification_service] = lambda: verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:
    """Every route requires the bearer API key."""

    def test_missing_key(self, client):
        response = client.get("/health")
        assert response.status_code in (401, 403)

    def test_wrong_key(self, client):
        response = client.get("/health", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_health(self, client):
        response = client.get("/health", headers=AUTH)
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestSubmitUTR:
    """Tests for POST /transactions/submit-utr."""

    def test_success(self, client, transaction_store):
        response = client.post(
            "/transactions/submit-utr",
            json={"utrNumber": "RRN999999999", "orderId": "ORD-1"},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "UTR submitted successfully",
            "state": "persisted",
        }
        assert len(transaction_store.records) == 1

    def test_duplicate_is_conflict(self, client):
        body = {"utrNumber": "RRN999999999", "orderId": "ORD-1"}
        client.post("/transactions/submit-utr", json=body, headers=AUTH)
        response = client.post("/transactions/submit-utr", json=body, headers=AUTH)
        assert response.status_code == 409
        assert response.json()["state"] == "duplicate_utr"

    def test_missing_fields_are_rejected_input(self, client):
        response = client.post("/transactions/submit-utr", json={}, headers=AUTH)
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "UTR number is required",
            "state": "rejected_input",
        }

    def test_unknown_order(self, client):
        response = client.post(
            "/transactions/submit-utr",
            json={"utrNumber": "RRN999999999", "orderId": "ORD-404"},
            headers=AUTH,
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_every_failure_state_has_status(self):
        for state in SubmissionState:
            if state in (
                SubmissionState.RECEIVED,
                SubmissionState.VALIDATED,
                SubmissionState.ORDER_RESOLVED,
                SubmissionState.DEDUPED,
                SubmissionState.FETCHED,
                SubmissionState.MATCHED,
            ):
                continue
            assert state in STATUS_CODES


class TestVerifyGateway:
    """Tests for POST /gateways/{gateway_id}/verify."""

    def test_verify_with_credentials(self, client, gateway_store):
        response = client.post(
            "/gateways/gw_razorpay/verify",
            json={"apiSecret": "k2,s2"},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["status"] == "active"

    def test_verify_without_body(self, client):
        response = client.post("/gateways/gw_razorpay/verify", headers=AUTH)
        assert response.status_code == 200
        assert response.json()["status"] == GatewayStatus.ACTIVE.value

    def test_unknown_gateway(self, client):
        response = client.post("/gateways/missing/verify", headers=AUTH)
        assert response.status_code == 404
