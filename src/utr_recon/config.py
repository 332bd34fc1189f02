"""Environment-driven settings for gateway access."""

import os
from typing import Dict

from pydantic import BaseModel, Field

from .reconciliation.models import GatewayType


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


class GatewaySettings(BaseModel):
    """Base URLs, timeouts and lookback windows per provider.

    Ledger-search providers get a short timeout; status-polling providers
    get a slightly longer one so a slow order lookup is not cut off early.
    """
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    paytm_base_url: str = "https://securegw.paytm.in"
    bharatpe_base_url: str = "https://api.bharatpe.com"

    timeouts: Dict[GatewayType, float] = Field(default_factory=lambda: {
        GatewayType.RAZORPAY: 10.0,
        GatewayType.STRIPE: 10.0,
        GatewayType.PAYTM: 15.0,
        GatewayType.BHARATPE: 15.0,
    })
    lookback_hours: Dict[GatewayType, float] = Field(default_factory=lambda: {
        GatewayType.RAZORPAY: 3.0,
        GatewayType.STRIPE: 24.0,
    })

    razorpay_page_size: int = 100
    utr_length: int = 12

    def timeout_for(self, gateway_type: GatewayType) -> float:
        return self.timeouts.get(gateway_type, 10.0)

    def lookback_for(self, gateway_type: GatewayType) -> float:
        return self.lookback_hours.get(gateway_type, 24.0)

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """Build settings, letting environment variables override defaults.

        Recognised variables are ``<PROVIDER>_BASE_URL``,
        ``<PROVIDER>_TIMEOUT_SECONDS``, ``<PROVIDER>_LOOKBACK_HOURS``,
        ``RAZORPAY_PAGE_SIZE`` and ``UTR_LENGTH``.
        """
        defaults = cls()
        timeouts = {
            gateway_type: _env_float(f"{gateway_type.name}_TIMEOUT_SECONDS", seconds)
            for gateway_type, seconds in defaults.timeouts.items()
        }
        lookback = {
            gateway_type: _env_float(f"{gateway_type.name}_LOOKBACK_HOURS", hours)
            for gateway_type, hours in defaults.lookback_hours.items()
        }
        return cls(
            razorpay_base_url=os.getenv("RAZORPAY_BASE_URL", defaults.razorpay_base_url),
            paytm_base_url=os.getenv("PAYTM_BASE_URL", defaults.paytm_base_url),
            bharatpe_base_url=os.getenv("BHARATPE_BASE_URL", defaults.bharatpe_base_url),
            timeouts=timeouts,
            lookback_hours=lookback,
            razorpay_page_size=_env_int("RAZORPAY_PAGE_SIZE", defaults.razorpay_page_size),
            utr_length=_env_int("UTR_LENGTH", defaults.utr_length),
        )
