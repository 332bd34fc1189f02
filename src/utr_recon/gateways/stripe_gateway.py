"""Stripe PaymentIntent ledger search."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import stripe

from ..errors import GatewayConfigurationError, UpstreamUnavailableError
from ..reconciliation.models import (
    FetchWindow,
    GatewayConfig,
    GatewayStatus,
    GatewayType,
    Order,
    VerificationResult,
)
from .base import GatewayAdapter
from .credentials import ApiKeyCredentials

logger = logging.getLogger(__name__)

# Timeout the shared Stripe HTTP client was last built with
_http_client_timeout: Optional[float] = None


def _configure_stripe(timeout: float) -> None:
    """Bound each Stripe HTTP call by ``timeout`` and disable SDK retries."""
    global _http_client_timeout

    stripe.max_network_retries = 0
    if _http_client_timeout != timeout:
        stripe.default_http_client = stripe.http_client.RequestsClient(timeout=timeout)
        _http_client_timeout = timeout


class StripeAdapter(GatewayAdapter):
    """Searches Stripe PaymentIntents created inside the lookback window.

    The bank reference is expected in the intent's metadata (``utr`` or
    ``rrn``), written there by the merchant's checkout.
    """

    gateway_type = GatewayType.STRIPE
    display_name = "Stripe"

    # Fields that should not be carried into the stored payload
    SENSITIVE_FIELDS = frozenset([
        'client_secret',
        'payment_method',
        'source',
        'customer',
        'payment_method_details',
        'card',
        'bank_account',
    ])

    def _sanitize_response(self, raw_response: Dict[str, Any]) -> Dict[str, Any]:
        """Remove sensitive fields from a raw Stripe object.

        Args:
            raw_response: Raw response dictionary from Stripe.

        Returns:
            Sanitized response dictionary.
        """
        if not raw_response:
            return {}
        sanitized = {}
        for key, value in raw_response.items():
            if key in self.SENSITIVE_FIELDS:
                continue
            if isinstance(value, dict):
                sanitized[key] = self._sanitize_response(value)
            else:
                sanitized[key] = value
        return sanitized

    def _list_payment_intents(
        self,
        api_key: str,
        window: FetchWindow,
        deadline: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """List and sanitize PaymentIntents, page by page.

        Runs in a worker thread. Paging stops with ``TimeoutError`` once
        ``time.monotonic()`` passes ``deadline``, so an abandoned call does not
        keep querying Stripe.
        """
        payment_intents = stripe.PaymentIntent.list(
            api_key=api_key,
            created={
                "gte": int(window.start_time.timestamp()),
                "lte": int(window.end_time.timestamp()),
            },
            limit=100,  # Stripe max is 100
        )
        records = []
        for pi in payment_intents.auto_paging_iter():
            if deadline is not None and time.monotonic() > deadline:
                raise TimeoutError("Stripe listing exceeded its deadline")
            raw = pi.to_dict() if hasattr(pi, "to_dict") else dict(pi)
            records.append(self._sanitize_response(raw))
        return records

    async def fetch_transactions(
        self,
        config: GatewayConfig,
        order: Order,
        window: Optional[FetchWindow] = None,
    ) -> List[Dict[str, Any]]:
        credentials: ApiKeyCredentials = self.parse_credentials(config)
        window = window or self.default_window()

        logger.info(
            f"Fetching Stripe transactions from {window.start_time.isoformat()} "
            f"to {window.end_time.isoformat()} for order {order.order_id}"
        )

        _configure_stripe(self.timeout)
        deadline = time.monotonic() + self.timeout
        try:
            # stripe-python is blocking; keep it off the event loop
            records = await asyncio.wait_for(
                asyncio.to_thread(self._list_payment_intents, credentials.api_key, window, deadline),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            logger.error(f"Stripe API timed out after {self.timeout}s")
            raise UpstreamUnavailableError(
                self.gateway_type.value, "Failed to fetch Stripe transactions: request timed out"
            ) from e
        except stripe.error.AuthenticationError as e:
            logger.error("Stripe authentication failed")
            raise GatewayConfigurationError(self.gateway_type.value, "Invalid Stripe API key") from e
        except stripe.error.APIConnectionError as e:
            logger.error("Failed to connect to Stripe API")
            raise UpstreamUnavailableError(
                self.gateway_type.value, "Failed to connect to Stripe API"
            ) from e
        except stripe.error.StripeError as e:
            logger.error(f"Stripe API error: {type(e).__name__}")
            raise UpstreamUnavailableError(
                self.gateway_type.value,
                f"Failed to fetch Stripe transactions: {e.user_message or type(e).__name__}",
            ) from e

        logger.info(f"Fetched {len(records)} transactions from Stripe for order {order.order_id}")
        return records

    async def verify(self, config: GatewayConfig) -> VerificationResult:
        """Check the API key with a one-item PaymentIntent listing."""
        credentials: ApiKeyCredentials = self.parse_credentials(config)
        _configure_stripe(self.timeout)
        await asyncio.wait_for(
            asyncio.to_thread(stripe.PaymentIntent.list, api_key=credentials.api_key, limit=1),
            timeout=self.timeout,
        )
        return VerificationResult(
            status=GatewayStatus.ACTIVE,
            details={"message": "Stripe API key accepted"},
        )
