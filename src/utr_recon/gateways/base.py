"""Gateway adapter interface."""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Type

import httpx

from ..config import GatewaySettings
from ..errors import UpstreamUnavailableError
from ..reconciliation.models import (
    CanonicalTransaction,
    FetchWindow,
    GatewayConfig,
    GatewayStatus,
    GatewayType,
    Order,
    VerificationResult,
)
from ..reconciliation.normalizer import extract_utr, normalize_transaction, normalize_transactions
from .credentials import CREDENTIAL_MODELS, GatewayCredentials

logger = logging.getLogger(__name__)


class GatewayAdapter(ABC):
    """
    One upstream provider: how to authenticate, how to fetch its recent
    ledger, how to read its records, and how to check its credentials.
    Adapters never mutate the GatewayConfig they are handed.
    """

    gateway_type: GatewayType
    display_name: str = "Gateway"

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the adapter.

        Args:
            settings: Gateway settings. Defaults to ``GatewaySettings.from_env()``.
            client: Optional shared HTTP client. When omitted, each call opens
                its own client with the provider's timeout.
        """
        self.settings = settings or GatewaySettings.from_env()
        self._client = client

    @property
    def timeout(self) -> float:
        return self.settings.timeout_for(self.gateway_type)

    @property
    def credentials_model(self) -> Type[GatewayCredentials]:
        return CREDENTIAL_MODELS[self.gateway_type]

    def parse_credentials(self, config: GatewayConfig) -> GatewayCredentials:
        return self.credentials_model.parse(config)

    def default_window(self) -> Optional[FetchWindow]:
        """Lookback window used when the caller passes none.

        Providers that look up a single order return None.
        """
        return FetchWindow.lookback(self.settings.lookback_for(self.gateway_type))

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def _get_json(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> Any:
        """GET a provider endpoint and decode its JSON body.

        Raises:
            UpstreamUnavailableError: On network failure, timeout, non-2xx
                status or an undecodable body. The message carries the
                provider's own error text, never the request credentials.
        """
        provider = self.gateway_type.value
        try:
            async with self._http() as client:
                response = await client.get(
                    url, params=params, headers=headers, auth=auth, timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            detail = _provider_error_message(e.response)
            logger.error(f"{self.display_name} API returned HTTP {e.response.status_code}")
            raise UpstreamUnavailableError(
                provider,
                f"Failed to fetch {self.display_name} transactions: {detail}",
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"{self.display_name} API timed out after {self.timeout}s")
            raise UpstreamUnavailableError(
                provider,
                f"Failed to fetch {self.display_name} transactions: request timed out",
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Failed to connect to {self.display_name} API: {type(e).__name__}")
            raise UpstreamUnavailableError(
                provider,
                f"Failed to fetch {self.display_name} transactions: could not reach gateway",
            ) from e
        except ValueError as e:
            logger.error(f"{self.display_name} API returned a malformed body")
            raise UpstreamUnavailableError(
                provider,
                f"Failed to fetch {self.display_name} transactions: malformed response",
            ) from e

    @abstractmethod
    async def fetch_transactions(
        self,
        config: GatewayConfig,
        order: Order,
        window: Optional[FetchWindow] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch recent native ledger entries from the provider.

        Args:
            config: Gateway configuration holding the credentials.
            order: Order being reconciled.
            window: Lookback window. Defaults to ``default_window()``.

        Returns:
            Native records in provider order. An empty list is a valid result.

        Raises:
            GatewayConfigurationError: If credentials are missing or malformed.
            UpstreamUnavailableError: If the provider could not be queried.
        """
        raise NotImplementedError

    @abstractmethod
    async def verify(self, config: GatewayConfig) -> VerificationResult:
        """Run a minimum-viable connectivity or credential check.

        Implementations may raise; ``verify_gateway_config`` turns every
        exception into an INACTIVE result.
        """
        raise NotImplementedError

    def normalize(self, record: Dict[str, Any]) -> CanonicalTransaction:
        return normalize_transaction(self.gateway_type, record)

    def normalize_all(self, records: List[Dict[str, Any]]) -> List[CanonicalTransaction]:
        return normalize_transactions(self.gateway_type, records)

    def extract_utr(self, record: Dict[str, Any]) -> Optional[str]:
        return extract_utr(self.gateway_type, record)

    def _presence_check(self, config: GatewayConfig, **fields: str) -> VerificationResult:
        missing = sorted(name for name, value in fields.items() if not value)
        if missing:
            return VerificationResult(
                status=GatewayStatus.INACTIVE,
                details={"message": f"{self.display_name} verification: missing credentials ({', '.join(missing)})"},
            )
        return VerificationResult(
            status=GatewayStatus.ACTIVE,
            details={"message": f"{self.display_name} verification: required credentials present"},
        )


def _provider_error_message(response: httpx.Response) -> str:
    """Extract the provider's own error description from an error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            description = error.get("description") or error.get("message")
            if description:
                return str(description)
        elif isinstance(error, str) and error:
            return error
        message = body.get("message")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"

