"""
wallet.py - Running-balance wallets with append-only history

WalletLedger is instantiated twice: once for the watch holder (UserWallet)
and once for the merchant terminal (MerchantWallet). A wallet never validates
business rules itself; the operation modules check every precondition first
and only then call the mutating methods here, so a rejected operation cannot
leave partial state behind.

Key responsibilities:
    - Hold the running balance and the durable history (newest first)
    - Apply credits/debits together with their transaction record
    - Clone and (de)serialize for persistence snapshots
"""

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import copy

from .core import (
    Transaction, TransactionKind,
    ZERO, PRIMARY_BANK,
    InactiveDevice, LinkRequired, InvalidAmount, WalletCapExceeded, InsufficientFunding,
    to_decimal, format_amount,
)
from .config import NetworkConfig
from .connectivity import ConnectivityState, is_watch_linked
from .sync_queue import OfflineSyncQueue


class WalletLedger:
    """
    A running balance plus the durable transaction history behind it.

    Thread Safety:
        Not thread-safe. PaymentNetwork serializes every mutation behind its lock.
    """

    def __init__(
        self,
        name: str,
        balance: Decimal = ZERO,
        history: Optional[List[Transaction]] = None,
        is_active: bool = True,
    ):
        self.name = name
        self.balance: Decimal = to_decimal(balance)
        self.history: List[Transaction] = list(history or [])
        self.is_active = is_active

    def credit(self, tx_id: str, amount: Decimal, counterparty: str, timestamp: datetime) -> Transaction:
        """Add amount to the balance and prepend a CREDIT record to history."""
        tx = Transaction(
            id=tx_id,
            amount=amount,
            timestamp=timestamp,
            kind=TransactionKind.CREDIT,
            counterparty=counterparty,
        )
        self.balance += amount
        self.history.insert(0, tx)
        return tx

    def recent(self, n: int) -> List[Transaction]:
        """The n most recent history entries."""
        return self.history[:n]

    def history_total(self) -> Decimal:
        """Net effect of every history entry on the balance."""
        return sum((tx.signed_amount for tx in self.history), ZERO)

    def toggle_active(self) -> bool:
        self.is_active = not self.is_active
        return self.is_active

    def clone(self) -> WalletLedger:
        """Independent copy; history entries are immutable and shared."""
        cloned = copy.copy(self)
        cloned.history = list(self.history)
        return cloned

    def to_dict(self) -> Dict[str, Any]:
        return {
            'balance': str(self.balance),
            'history': [tx.to_dict() for tx in self.history],
            'is_active': self.is_active,
        }

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"{type(self).__name__}({self.name}: {format_amount(self.balance)}, {len(self.history)} tx, {state})"


class UserWallet(WalletLedger):
    """
    The watch holder's wallet.

    Besides the watch balance it owns the linked bank balance that funds
    top-ups, the offline staging queue for debits recorded on the watch and
    the auto-reload switch.
    """

    def __init__(
        self,
        name: str = "user",
        balance: Decimal = ZERO,
        bank_balance: Decimal = ZERO,
        history: Optional[List[Transaction]] = None,
        pending_sync: Optional[List[Transaction]] = None,
        is_active: bool = True,
        auto_reload_enabled: bool = False,
    ):
        super().__init__(name, balance, history, is_active)
        self.bank_balance: Decimal = to_decimal(bank_balance)
        self.pending_sync = OfflineSyncQueue(pending_sync)
        self.auto_reload_enabled = auto_reload_enabled

    @property
    def unsynced_count(self) -> int:
        return len(self.pending_sync)

    def fund_from_bank(self, tx_id: str, amount: Decimal, counterparty: str, timestamp: datetime) -> Transaction:
        """Move amount from the linked bank into the wallet (recorded straight into history)."""
        tx = self.credit(tx_id, amount, counterparty, timestamp)
        self.bank_balance -= amount
        return tx

    def stage_debit(self, tx_id: str, amount: Decimal, counterparty: str, timestamp: datetime) -> Transaction:
        """Debit the balance and stage the record on the watch, pending sync."""
        tx = Transaction(
            id=tx_id,
            amount=amount,
            timestamp=timestamp,
            kind=TransactionKind.DEBIT,
            counterparty=counterparty,
        )
        self.balance -= amount
        self.pending_sync.stage(tx)
        return tx

    def clone(self) -> UserWallet:
        cloned = super().clone()
        cloned.pending_sync = OfflineSyncQueue(self.pending_sync.entries)
        return cloned

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'bank_balance': str(self.bank_balance),
            'pending_sync': [tx.to_dict() for tx in self.pending_sync.entries],
            'auto_reload_enabled': self.auto_reload_enabled,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: str = "user") -> UserWallet:
        return cls(
            name=name,
            balance=to_decimal(data['balance']),
            bank_balance=to_decimal(data['bank_balance']),
            history=[Transaction.from_dict(tx) for tx in data['history']],
            pending_sync=[Transaction.from_dict(tx) for tx in data['pending_sync']],
            is_active=bool(data['is_active']),
            # Snapshots saved before auto-reload existed lack the flag
            auto_reload_enabled=bool(data.get('auto_reload_enabled', False)),
        )


class MerchantWallet(WalletLedger):
    """
    The merchant terminal's wallet.

    The merchant side is always online: credits land directly in history.
    settled_balance is the merchant's external bank, fed by settlement.
    """

    def __init__(
        self,
        name: str = "merchant",
        balance: Decimal = ZERO,
        settled_balance: Decimal = ZERO,
        history: Optional[List[Transaction]] = None,
        is_active: bool = True,
    ):
        super().__init__(name, balance, history, is_active)
        self.settled_balance: Decimal = to_decimal(settled_balance)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['settled_balance'] = str(self.settled_balance)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: str = "merchant") -> MerchantWallet:
        return cls(
            name=name,
            balance=to_decimal(data['balance']),
            settled_balance=to_decimal(data['settled_balance']),
            history=[Transaction.from_dict(tx) for tx in data['history']],
            is_active=bool(data['is_active']),
        )


# ============================================================================
# TOP-UP
# ============================================================================

def validate_top_up(
    user: UserWallet,
    conn: ConnectivityState,
    amount: Decimal,
    config: NetworkConfig,
) -> None:
    """
    Check every precondition of a manual top-up, in order.

    Raises:
        InactiveDevice: Watch wallet is switched off
        LinkRequired: Watch not linked over bluetooth, or phone wifi down
        InvalidAmount: amount <= 0 or above the per-load cap
        WalletCapExceeded: Resulting balance would exceed the wallet ceiling
        InsufficientFunding: Linked bank cannot cover the amount
    """
    symbol = config.currency_symbol
    if not user.is_active:
        raise InactiveDevice()
    if not is_watch_linked(conn, user.is_active) or not conn.wifi_up:
        raise LinkRequired()
    if amount <= 0 or amount > config.max_load_amount:
        raise InvalidAmount(
            f"Load amount must be in (0, {config.max_load_amount}], got {amount}",
            phone_message=f"Load amount must be more than {symbol}0 and at most "
                          f"{format_amount(config.max_load_amount, symbol)}.",
        )
    if user.balance + amount > config.wallet_ceiling:
        raise WalletCapExceeded(
            phone_message=f"Maximum wallet limit of {format_amount(config.wallet_ceiling, symbol)} reached.",
        )
    if user.bank_balance < amount:
        raise InsufficientFunding()


def load_top_up(
    user: UserWallet,
    conn: ConnectivityState,
    amount: Decimal,
    tx_id: str,
    timestamp: datetime,
    config: NetworkConfig,
) -> Transaction:
    """
    Validate and apply a manual top-up from the linked bank.

    Top-ups originate phone-side and are already online, so the CREDIT goes
    straight into history rather than through the sync queue.

    Returns:
        The CREDIT transaction labelled with the primary bank

    Raises:
        ZipPayError: Any rejection from validate_top_up(); nothing is mutated
    """
    amount = to_decimal(amount)
    validate_top_up(user, conn, amount, config)
    return user.fund_from_bank(tx_id, amount, PRIMARY_BANK, timestamp)
