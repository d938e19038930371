"""
assistant.py - Read-only view for the advisory assistant

The conversational assistant is an external collaborator. It may look at a
snapshot of balances, recent transactions and the auto-reload switch, but it
never receives a handle that can mutate the network.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple

from .core import Transaction, format_amount
from .config import NetworkConfig, DEFAULT_CONFIG


DEFAULT_RECENT_COUNT = 10


@dataclass(frozen=True, slots=True)
class AdvisorySnapshot:
    """Frozen copy of what the assistant is allowed to see."""
    balance: Decimal
    bank_balance: Decimal
    merchant_balance: Decimal
    recent_transactions: Tuple[Transaction, ...]
    unsynced_count: int
    auto_reload_enabled: bool
    payment_limit: Decimal
    wallet_ceiling: Decimal
    currency_symbol: str = "₹"

    def to_context(self) -> str:
        """Plain-text context block handed to the assistant."""
        sym = self.currency_symbol
        recent = "\n".join(
            f"  - {tx.kind.value} {format_amount(tx.amount, sym)} {tx.counterparty} ({tx.timestamp.isoformat()})"
            for tx in self.recent_transactions
        ) or "  (none)"
        return (
            f"User Current Wallet Balance: {format_amount(self.balance, sym)}\n"
            f"User Phone Bank Balance: {format_amount(self.bank_balance, sym)}\n"
            f"Unsynced Watch Transactions: {self.unsynced_count}\n"
            f"Recent Transactions:\n{recent}\n"
            f"Auto-Reload is: {'ON' if self.auto_reload_enabled else 'OFF'}\n"
            f"Max amount per transaction is {format_amount(self.payment_limit, sym)}. "
            f"Max wallet limit is {format_amount(self.wallet_ceiling, sym)}."
        )


def build_advisory_snapshot(
    state,
    config: NetworkConfig = DEFAULT_CONFIG,
    recent_count: int = DEFAULT_RECENT_COUNT,
) -> AdvisorySnapshot:
    """Take an AdvisorySnapshot of a GlobalState."""
    if recent_count < 0:
        raise ValueError(f"recent_count must be non-negative, got {recent_count}")
    return AdvisorySnapshot(
        balance=state.user.balance,
        bank_balance=state.user.bank_balance,
        merchant_balance=state.merchant.balance,
        recent_transactions=tuple(state.user.recent(recent_count)),
        unsynced_count=state.user.unsynced_count,
        auto_reload_enabled=state.user.auto_reload_enabled,
        payment_limit=config.payment_limit,
        wallet_ceiling=config.wallet_ceiling,
        currency_symbol=config.currency_symbol,
    )
