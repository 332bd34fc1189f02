"""BharatPe transaction-status lookup."""

import logging
from typing import Any, Dict, List, Optional

from ..reconciliation.models import FetchWindow, GatewayConfig, GatewayType, Order, VerificationResult
from .base import GatewayAdapter
from .credentials import BharatPeCredentials

logger = logging.getLogger(__name__)


class BharatPeAdapter(GatewayAdapter):
    gateway_type = GatewayType.BHARATPE
    display_name = "BharatPe"

    def default_window(self) -> Optional[FetchWindow]:
        return None

    @property
    def status_url(self) -> str:
        return f"{self.settings.bharatpe_base_url.rstrip('/')}/transaction/v1/status"

    async def fetch_transactions(
        self,
        config: GatewayConfig,
        order: Order,
        window: Optional[FetchWindow] = None,
    ) -> List[Dict[str, Any]]:
        credentials: BharatPeCredentials = self.parse_credentials(config)
        params = {
            "merchantId": credentials.merchant_id,
            "orderId": order.order_id,
        }
        headers = {
            "Authorization": f"Bearer {credentials.api_token}",
            "Content-Type": "application/json",
        }

        logger.info(f"Fetching BharatPe transaction status for order {order.order_id}")
        body = await self._get_json(self.status_url, params, headers)

        if isinstance(body, list):
            records = [r for r in body if isinstance(r, dict) and r]
        elif isinstance(body, dict) and body:
            records = [body]
        else:
            records = []

        logger.info(f"Fetched {len(records)} BharatPe transactions for order {order.order_id}")
        return records

    async def verify(self, config: GatewayConfig) -> VerificationResult:
        return self._presence_check(config, api_key=config.api_key, upi_id=config.upi_id)
