"""Gateway credential verification."""

import logging
from typing import Dict, Optional

import httpx

from ..config import GatewaySettings
from ..errors import GatewayNotFoundError
from ..gateways import verify_gateway_config
from .models import GatewayConfig, GatewayStatus, VerificationResult
from .stores import GatewayConfigStore

logger = logging.getLogger(__name__)

# Request field name -> key in the stored credential bundle
CREDENTIAL_FIELDS: Dict[str, str] = {
    "api_token": "apiToken",
    "api_secret": "apiSecret",
    "transaction_ref": "tr",
    "accesskey_id": "accesskeyId",
    "merchant_key": "merchantKey",
    "cookie": "cookie",
    "xsrf": "xsrf",
}


def merge_credentials(config: GatewayConfig, updates: Dict[str, Optional[str]]) -> GatewayConfig:
    """Return a copy of ``config`` with new credential values applied.

    Keys may be request field names (``api_secret``) or bundle keys
    (``apiSecret``). ``None`` values leave the stored value untouched.
    """
    api_details = dict(config.api_details)
    for key, value in updates.items():
        if value is None:
            continue
        api_details[CREDENTIAL_FIELDS.get(key, key)] = value
    return config.model_copy(update={"api_details": api_details})


class GatewayVerificationService:
    """Re-verifies a stored gateway configuration and records its status.

    Runs on its own trigger and is the only writer of gateway
    configurations in this engine.
    """

    def __init__(
        self,
        gateway_store: GatewayConfigStore,
        settings: Optional[GatewaySettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.gateway_store = gateway_store
        self.settings = settings or GatewaySettings.from_env()
        self._http_client = http_client

    async def verify_gateway(
        self,
        gateway_id: str,
        credential_updates: Optional[Dict[str, Optional[str]]] = None,
    ) -> VerificationResult:
        """Merge new credentials, check them with the provider and save the outcome.

        Args:
            gateway_id: Gateway configuration ID.
            credential_updates: Optional credential fields to store first.

        Returns:
            VerificationResult from the provider check.

        Raises:
            GatewayNotFoundError: If the configuration does not exist.
        """
        config = await self.gateway_store.find_by_id(gateway_id)
        if config is None:
            raise GatewayNotFoundError("Payment gateway not found")

        if credential_updates:
            config = merge_credentials(config, credential_updates)

        result = await verify_gateway_config(config, settings=self.settings, client=self._http_client)

        if result.status == GatewayStatus.UNKNOWN:
            new_status = config.status
        else:
            new_status = result.status
        config = config.model_copy(update={"status": new_status})
        await self.gateway_store.save(config)

        logger.info(f"Gateway {gateway_id} verified as {result.status.value}; saved as {new_status.value}")
        return result
