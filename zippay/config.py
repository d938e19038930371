"""
config.py - Business limits for the payment network

All constants that govern top-ups, payments, the offline queue and
auto-reload live in one frozen dataclass. Modify a copy to experiment:

    config = replace(DEFAULT_CONFIG, offline_cap=3)
    network = PaymentNetwork(config=config)
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import timedelta
from decimal import Decimal
from typing import Any, Mapping

from .core import to_decimal


_DECIMAL_FIELDS = (
    'max_load_amount',
    'wallet_ceiling',
    'payment_limit',
    'emergency_fee_rate',
    'reload_threshold',
    'reload_target',
    'initial_bank_balance',
)


@dataclass(frozen=True)
class NetworkConfig:
    """Configuration for a PaymentNetwork."""
    # Top-up
    max_load_amount: Decimal = Decimal("500")     # Per-transaction cap on a load
    wallet_ceiling: Decimal = Decimal("500")      # Absolute wallet ceiling

    # Payments
    payment_limit: Decimal = Decimal("200")       # Micro-payment limit per request
    emergency_fee_rate: Decimal = Decimal("0.04")  # Overdraft surcharge
    offline_cap: int = 5                          # Max unsynced watch debits

    # Auto-reload
    reload_threshold: Decimal = Decimal("50")     # Arms below this balance
    reload_target: Decimal = Decimal("200")       # Balance after a reload
    settling_delay: timedelta = timedelta(seconds=1)

    # Initial funding of a fresh state
    initial_bank_balance: Decimal = Decimal("10000")

    # Labels
    currency_symbol: str = "₹"
    merchant_name: str = "Local Merchant"
    user_label: str = "ZiPPaY User"

    def __post_init__(self):
        for name in _DECIMAL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if not isinstance(self.settling_delay, timedelta):
            object.__setattr__(self, 'settling_delay', timedelta(seconds=float(self.settling_delay)))
        if self.settling_delay < timedelta(0):
            raise ValueError("settling_delay must be non-negative")
        if self.offline_cap < 0:
            raise ValueError(f"offline_cap must be non-negative, got {self.offline_cap}")
        if self.reload_threshold >= self.reload_target:
            raise ValueError("reload_threshold must be below reload_target")
        if self.reload_target > self.wallet_ceiling:
            raise ValueError("reload_target cannot exceed wallet_ceiling")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> NetworkConfig:
        """
        Build a config from a plain mapping (e.g. parsed JSON).

        Unknown keys are ignored. settling_delay may be given in seconds.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


DEFAULT_CONFIG = NetworkConfig()
