"""Upstream payment gateway adapters."""

from .base import GatewayAdapter
from .credentials import (
    GatewayCredentials,
    RazorpayCredentials,
    PaytmCredentials,
    BharatPeCredentials,
    ApiKeyCredentials,
    CREDENTIAL_MODELS,
    parse_credentials,
)
from .razorpay import RazorpayAdapter
from .paytm import PaytmAdapter
from .bharatpe import BharatPeAdapter
from .stripe_gateway import StripeAdapter
from .presence import PresenceCheckAdapter, PayPalAdapter, SquareAdapter
from .registry import ADAPTERS, get_gateway_adapter, verify_gateway_config

__all__ = [
    # Base
    "GatewayAdapter",
    # Credentials
    "GatewayCredentials",
    "RazorpayCredentials",
    "PaytmCredentials",
    "BharatPeCredentials",
    "ApiKeyCredentials",
    "CREDENTIAL_MODELS",
    "parse_credentials",
    # Adapters
    "RazorpayAdapter",
    "PaytmAdapter",
    "BharatPeAdapter",
    "StripeAdapter",
    "PresenceCheckAdapter",
    "PayPalAdapter",
    "SquareAdapter",
    # Lookup
    "ADAPTERS",
    "get_gateway_adapter",
    "verify_gateway_config",
]
