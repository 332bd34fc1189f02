"""Typed credential bundles, one per provider.

Gateway configurations store credentials as an open key/value bundle. Each
provider declares the fields it actually needs here, and ``parse`` turns the
open bundle into the typed one or fails with GatewayConfigurationError.
"""

from typing import Dict, Type

from pydantic import BaseModel

from ..errors import GatewayConfigurationError
from ..reconciliation.models import GatewayConfig, GatewayType


class GatewayCredentials(BaseModel):
    """Base class for provider credential bundles."""

    @classmethod
    def parse(cls, config: GatewayConfig) -> "GatewayCredentials":
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<redacted>)"

    __str__ = __repr__


def _require(config: GatewayConfig, **fields: str) -> None:
    missing = sorted(name for name, value in fields.items() if not value or not value.strip())
    if missing:
        raise GatewayConfigurationError(
            config.type.value,
            f"{config.type.value} credentials are missing required fields: {', '.join(missing)}",
        )


class RazorpayCredentials(GatewayCredentials):
    key_id: str
    key_secret: str

    @classmethod
    def parse(cls, config: GatewayConfig) -> "RazorpayCredentials":
        api_secret = config.api_details.get("apiSecret", "")
        if not api_secret or "," not in api_secret:
            raise GatewayConfigurationError(
                config.type.value,
                "Razorpay API secret is required and must be in format: key_id,key_secret",
            )
        key_id, _, key_secret = api_secret.partition(",")
        key_id, key_secret = key_id.strip(), key_secret.strip()
        if not key_id or not key_secret:
            raise GatewayConfigurationError(
                config.type.value,
                "Invalid Razorpay API secret format. Expected: key_id,key_secret",
            )
        return cls(key_id=key_id, key_secret=key_secret)


class PaytmCredentials(GatewayCredentials):
    api_token: str
    api_secret: str
    merchant_id: str

    @classmethod
    def parse(cls, config: GatewayConfig) -> "PaytmCredentials":
        api_token = config.api_details.get("apiToken", "")
        api_secret = config.api_details.get("apiSecret", "")
        _require(config, apiToken=api_token, apiSecret=api_secret, merchant_id=config.merchant_id)
        return cls(api_token=api_token, api_secret=api_secret, merchant_id=config.merchant_id)


class BharatPeCredentials(GatewayCredentials):
    api_token: str
    api_secret: str
    merchant_id: str

    @classmethod
    def parse(cls, config: GatewayConfig) -> "BharatPeCredentials":
        api_token = config.api_details.get("apiToken", "")
        api_secret = config.api_details.get("apiSecret", "")
        _require(config, apiToken=api_token, apiSecret=api_secret, merchant_id=config.merchant_id)
        return cls(api_token=api_token, api_secret=api_secret, merchant_id=config.merchant_id)


class ApiKeyCredentials(GatewayCredentials):
    """Single API key, used by Stripe, PayPal and Square."""
    api_key: str

    @classmethod
    def parse(cls, config: GatewayConfig) -> "ApiKeyCredentials":
        _require(config, api_key=config.api_key)
        return cls(api_key=config.api_key)


CREDENTIAL_MODELS: Dict[GatewayType, Type[GatewayCredentials]] = {
    GatewayType.RAZORPAY: RazorpayCredentials,
    GatewayType.PAYTM: PaytmCredentials,
    GatewayType.BHARATPE: BharatPeCredentials,
    GatewayType.STRIPE: ApiKeyCredentials,
    GatewayType.PAYPAL: ApiKeyCredentials,
    GatewayType.SQUARE: ApiKeyCredentials,
}


def parse_credentials(config: GatewayConfig) -> GatewayCredentials:
    """Validate a configuration's credential bundle for its provider.

    Args:
        config: Gateway configuration.

    Returns:
        The provider's typed credential bundle.

    Raises:
        GatewayConfigurationError: If required fields are missing or malformed.
    """
    model = CREDENTIAL_MODELS.get(config.type)
    if model is None:
        raise GatewayConfigurationError(config.type.value, f"Unsupported gateway type: {config.type.value}")
    return model.parse(config)
