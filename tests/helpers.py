"""
helpers.py - Network builders and comparison utilities for ZiPPaY tests
"""

from datetime import datetime, timedelta
from typing import Any, Dict

from zippay import (
    PaymentNetwork,
    NetworkConfig,
    MemoryStateStore,
    RecordingNotifier,
    GlobalState,
    Side,
)


T0 = datetime(2025, 1, 1, 9, 0)
SETTLE = timedelta(seconds=1)


def make_network(
    online: bool = True,
    balance=None,
    bank_balance=None,
    config: NetworkConfig = None,
    notifier: RecordingNotifier = None,
    store: MemoryStateStore = None,
) -> PaymentNetwork:
    """Create a test-mode network, optionally online and with seeded balances."""
    network = PaymentNetwork(
        config=config or NetworkConfig(),
        store=store if store is not None else MemoryStateStore(),
        notifier=notifier if notifier is not None else RecordingNotifier(),
        initial_time=T0,
        verbose=False,
        test_mode=True,
    )
    if online:
        network.set_connectivity("bluetooth", True)
        network.set_connectivity("wifi", True)
    if balance is not None:
        network.set_balance(Side.USER, balance)
    if bank_balance is not None:
        network.set_bank_balance(Side.USER, bank_balance)
    return network


def state_summary(state: GlobalState) -> Dict[str, Any]:
    """Everything observable about a state, for before/after comparisons."""
    return state.to_dict()


def pay(network: PaymentNetwork, amount, origin: str = None):
    """Create a request and approve it in one step."""
    network.create_payment_request(amount, origin=origin)
    return network.resolve_payment_request(True)
