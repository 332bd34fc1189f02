"""Gateway adapter lookup by provider type."""

import logging
from typing import Dict, Optional, Type, Union

import httpx

from ..config import GatewaySettings
from ..errors import UnsupportedGatewayError
from ..reconciliation.models import GatewayConfig, GatewayStatus, GatewayType, VerificationResult
from .base import GatewayAdapter
from .bharatpe import BharatPeAdapter
from .paytm import PaytmAdapter
from .presence import PayPalAdapter, SquareAdapter
from .razorpay import RazorpayAdapter
from .stripe_gateway import StripeAdapter

logger = logging.getLogger(__name__)

ADAPTERS: Dict[GatewayType, Type[GatewayAdapter]] = {
    GatewayType.RAZORPAY: RazorpayAdapter,
    GatewayType.PAYTM: PaytmAdapter,
    GatewayType.BHARATPE: BharatPeAdapter,
    GatewayType.STRIPE: StripeAdapter,
    GatewayType.PAYPAL: PayPalAdapter,
    GatewayType.SQUARE: SquareAdapter,
}


def get_gateway_adapter(
    gateway_type: Union[GatewayType, str],
    settings: Optional[GatewaySettings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> GatewayAdapter:
    """Factory function to get the adapter for a provider.

    Args:
        gateway_type: Provider type or its string value.
        settings: Optional gateway settings.
        client: Optional shared HTTP client.

    Returns:
        GatewayAdapter implementation for the provider.

    Raises:
        UnsupportedGatewayError: If the provider is not supported.
    """
    try:
        gateway_type = GatewayType(gateway_type.lower() if isinstance(gateway_type, str) else gateway_type)
    except ValueError as e:
        raise UnsupportedGatewayError(str(gateway_type)) from e

    adapter_class = ADAPTERS.get(gateway_type)
    if not adapter_class:
        raise UnsupportedGatewayError(gateway_type.value)

    return adapter_class(settings=settings, client=client)


async def verify_gateway_config(
    config: GatewayConfig,
    settings: Optional[GatewaySettings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> VerificationResult:
    """Health-check a gateway configuration. Never raises.

    Args:
        config: Gateway configuration to check.
        settings: Optional gateway settings.
        client: Optional shared HTTP client.

    Returns:
        VerificationResult; any failure is reported as INACTIVE.
    """
    adapter_class = ADAPTERS.get(config.type)
    if adapter_class is None:
        return VerificationResult(
            status=GatewayStatus.UNKNOWN,
            details={"message": "Unsupported gateway type"},
        )

    try:
        adapter = adapter_class(settings=settings, client=client)
        result = await adapter.verify(config)
    except Exception as e:
        message = getattr(e, "message", None) or f"{type(e).__name__} during verification"
        logger.warning(f"Verification of gateway {config.id} ({config.type.value}) failed: {message}")
        return VerificationResult(status=GatewayStatus.INACTIVE, details={"message": message})

    logger.info(f"Verification of gateway {config.id} ({config.type.value}): {result.status.value}")
    return result
