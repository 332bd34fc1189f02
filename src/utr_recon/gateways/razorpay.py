"""Razorpay ledger search."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import UpstreamUnavailableError
from ..reconciliation.models import (
    FetchWindow,
    GatewayConfig,
    GatewayStatus,
    GatewayType,
    Order,
    VerificationResult,
)
from .base import GatewayAdapter
from .credentials import RazorpayCredentials

logger = logging.getLogger(__name__)


class RazorpayAdapter(GatewayAdapter):
    """Searches the Razorpay payments ledger over a short time window.

    Razorpay reports amounts in paise and carries the bank reference in
    ``acquirer_data.rrn``.
    """

    gateway_type = GatewayType.RAZORPAY
    display_name = "Razorpay"

    def _auth(self, credentials: RazorpayCredentials) -> httpx.BasicAuth:
        return httpx.BasicAuth(credentials.key_id, credentials.key_secret)

    @property
    def payments_url(self) -> str:
        return f"{self.settings.razorpay_base_url.rstrip('/')}/payments"

    async def fetch_transactions(
        self,
        config: GatewayConfig,
        order: Order,
        window: Optional[FetchWindow] = None,
    ) -> List[Dict[str, Any]]:
        credentials = self.parse_credentials(config)
        window = window or self.default_window()
        params = {
            "from": int(window.start_time.timestamp()),
            "to": int(window.end_time.timestamp()),
            "count": self.settings.razorpay_page_size,
            "skip": 0,
        }

        logger.info(
            f"Fetching Razorpay payments from {window.start_time.isoformat()} "
            f"to {window.end_time.isoformat()} for order {order.order_id}"
        )

        body = await self._get_json(self.payments_url, params, auth=self._auth(credentials))
        if not isinstance(body, dict):
            raise UpstreamUnavailableError(
                self.gateway_type.value,
                "Failed to fetch Razorpay transactions: malformed response",
            )
        items = body.get("items") or []

        logger.info(f"Fetched {len(items)} Razorpay payments for order {order.order_id}")
        return list(items)

    async def verify(self, config: GatewayConfig) -> VerificationResult:
        """Check the credentials with a one-item payments listing."""
        credentials = self.parse_credentials(config)
        await self._get_json(self.payments_url, {"count": 1}, auth=self._auth(credentials))
        return VerificationResult(
            status=GatewayStatus.ACTIVE,
            details={"message": "Razorpay credentials accepted"},
        )
