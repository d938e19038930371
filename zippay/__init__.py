"""
zippay - Micro-payment reconciliation for a watch wallet

Keeps three views of money consistent: the watch wallet, the phone app with
its linked bank, and the merchant terminal.

Usage:
    from zippay import PaymentNetwork, PaymentOutcome

    network = PaymentNetwork()
    network.set_connectivity("bluetooth", True)
    network.set_connectivity("wifi", True)

    # Fund the watch from the linked bank
    network.load_top_up(100)

    # Merchant raises a request, the watch approves it
    network.create_payment_request(40)
    outcome = network.resolve_payment_request(True)

    # Merge watch-side debits into the phone history
    network.sync_watch()
"""

# Core types
from .core import (
    Transaction,
    TransactionKind,
    PaymentRequest,
    PaymentOutcome,
    Channel,
    Side,
    ErrorKind,
    ZipPayError,
    InactiveDevice,
    LinkRequired,
    InvalidAmount,
    WalletCapExceeded,
    InsufficientFunding,
    AmountExceedsLimit,
    DebtPending,
    SyncRequired,
    Cancelled,
    to_decimal,
    format_amount,
    ZERO,
    PRIMARY_BANK,
    AUTO_RELOAD_BANK,
    EMERGENCY_MARKER,
)

# Configuration
from .config import NetworkConfig, DEFAULT_CONFIG

# State components
from .connectivity import ConnectivityState, is_watch_linked, is_load_ready
from .sync_queue import OfflineSyncQueue
from .wallet import WalletLedger, UserWallet, MerchantWallet
from .payments import Idle, Pending, IDLE, RequestSlot, compute_payment_debit

# Timers and auto-reload
from .scheduled_events import Event, EventScheduler
from .auto_reload import AutoReloadMonitor

# Notifications
from .notifications import (
    AlertLevel,
    Surface,
    Alert,
    Notifier,
    NullNotifier,
    LoggingNotifier,
    RecordingNotifier,
)

# Persistence
from .persistence import (
    GlobalState,
    StateStore,
    MemoryStateStore,
    JsonFileStateStore,
    initial_state,
)

# Assistant
from .assistant import AdvisorySnapshot, build_advisory_snapshot

# Network
from .network import PaymentNetwork

__version__ = "1.0.0"

__all__ = [
    # Core types
    'Transaction', 'TransactionKind', 'PaymentRequest', 'PaymentOutcome',
    'Channel', 'Side', 'ErrorKind',
    # Errors
    'ZipPayError', 'InactiveDevice', 'LinkRequired', 'InvalidAmount',
    'WalletCapExceeded', 'InsufficientFunding', 'AmountExceedsLimit',
    'DebtPending', 'SyncRequired', 'Cancelled',
    # Helpers and constants
    'to_decimal', 'format_amount', 'ZERO',
    'PRIMARY_BANK', 'AUTO_RELOAD_BANK', 'EMERGENCY_MARKER',
    # Configuration
    'NetworkConfig', 'DEFAULT_CONFIG',
    # State components
    'ConnectivityState', 'is_watch_linked', 'is_load_ready',
    'OfflineSyncQueue', 'WalletLedger', 'UserWallet', 'MerchantWallet',
    'Idle', 'Pending', 'IDLE', 'RequestSlot', 'compute_payment_debit',
    # Timers and auto-reload
    'Event', 'EventScheduler', 'AutoReloadMonitor',
    # Notifications
    'AlertLevel', 'Surface', 'Alert', 'Notifier',
    'NullNotifier', 'LoggingNotifier', 'RecordingNotifier',
    # Persistence
    'GlobalState', 'StateStore', 'MemoryStateStore', 'JsonFileStateStore', 'initial_state',
    # Assistant
    'AdvisorySnapshot', 'build_advisory_snapshot',
    # Network
    'PaymentNetwork',
]
