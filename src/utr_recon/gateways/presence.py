"""Providers that can be verified but not reconciled against."""

from typing import Any, Dict, List, Optional

from ..errors import UnsupportedGatewayError
from ..reconciliation.models import FetchWindow, GatewayConfig, GatewayType, Order, VerificationResult
from .base import GatewayAdapter


class PresenceCheckAdapter(GatewayAdapter):
    """
    Base for providers without a ledger API usable for UTR lookup.
    Verification only checks that an API key is configured.
    """

    def default_window(self) -> Optional[FetchWindow]:
        return None

    async def fetch_transactions(
        self,
        config: GatewayConfig,
        order: Order,
        window: Optional[FetchWindow] = None,
    ) -> List[Dict[str, Any]]:
        raise UnsupportedGatewayError(
            self.gateway_type.value,
            f"{self.display_name} does not support UTR reconciliation",
        )

    async def verify(self, config: GatewayConfig) -> VerificationResult:
        return self._presence_check(config, api_key=config.api_key)


class PayPalAdapter(PresenceCheckAdapter):
    gateway_type = GatewayType.PAYPAL
    display_name = "PayPal"


class SquareAdapter(PresenceCheckAdapter):
    gateway_type = GatewayType.SQUARE
    display_name = "Square"
