"""
test_config.py - Tests for NetworkConfig
"""

import pytest
from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

from zippay import NetworkConfig, DEFAULT_CONFIG, PaymentOutcome, SyncRequired

from tests.helpers import make_network, pay


class TestNetworkConfig:

    def test_defaults(self):
        assert DEFAULT_CONFIG.max_load_amount == Decimal("500")
        assert DEFAULT_CONFIG.wallet_ceiling == Decimal("500")
        assert DEFAULT_CONFIG.payment_limit == Decimal("200")
        assert DEFAULT_CONFIG.emergency_fee_rate == Decimal("0.04")
        assert DEFAULT_CONFIG.offline_cap == 5
        assert DEFAULT_CONFIG.reload_threshold == Decimal("50")
        assert DEFAULT_CONFIG.reload_target == Decimal("200")
        assert DEFAULT_CONFIG.settling_delay == timedelta(seconds=1)
        assert DEFAULT_CONFIG.initial_bank_balance == Decimal("10000")

    def test_coerces_to_decimal(self):
        config = NetworkConfig(payment_limit=100, emergency_fee_rate=0.05)
        assert config.payment_limit == Decimal("100")
        assert config.emergency_fee_rate == Decimal("0.05")

    def test_settling_delay_in_seconds(self):
        assert NetworkConfig(settling_delay=2.5).settling_delay == timedelta(seconds=2.5)

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            NetworkConfig(payment_limit=-1)

    def test_threshold_must_be_below_target(self):
        with pytest.raises(ValueError, match="reload_threshold"):
            NetworkConfig(reload_threshold=200, reload_target=200)

    def test_target_within_ceiling(self):
        with pytest.raises(ValueError, match="wallet_ceiling"):
            NetworkConfig(reload_target=600)

    def test_from_mapping_ignores_unknown_keys(self):
        config = NetworkConfig.from_mapping({'offline_cap': 3, 'colour': 'blue'})
        assert config.offline_cap == 3

    def test_is_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CONFIG.offline_cap = 9

    def test_custom_cap_applies(self):
        network = make_network(config=replace(DEFAULT_CONFIG, offline_cap=2), balance=Decimal("100"))
        pay(network, 1)
        pay(network, 1)
        network.create_payment_request(1)
        with pytest.raises(SyncRequired):
            network.resolve_payment_request(True)

    def test_custom_fee_applies(self):
        network = make_network(config=replace(DEFAULT_CONFIG, emergency_fee_rate=Decimal("0.10")))
        assert pay(network, 50) is PaymentOutcome.EMERGENCY_APPROVED
        assert network.user.balance == Decimal("-55")
