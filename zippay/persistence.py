"""
persistence.py - Whole-state snapshots

GlobalState bundles everything the network owns: both wallets, the payment
request slot, the radio flags, the transaction id sequence and the logical
clock. The network loads one snapshot on startup and saves one after every
successful mutation, always from inside its lock so a snapshot is never taken
mid-transaction.

Storage technology is not the engine's concern; StateStore is the contract.
Two stores are provided: in-memory (tests, embedding) and a JSON file.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable
import copy
import json
import logging
import os
import tempfile

from .core import PaymentRequest
from .config import NetworkConfig, DEFAULT_CONFIG
from .connectivity import ConnectivityState
from .payments import RequestSlot, Pending, IDLE
from .wallet import UserWallet, MerchantWallet


logger = logging.getLogger(__name__)

STATE_VERSION = 1


@dataclass
class GlobalState:
    """The combined ledger state guarded by the network lock."""
    user: UserWallet
    merchant: MerchantWallet
    connectivity: ConnectivityState = field(default_factory=ConnectivityState)
    slot: RequestSlot = IDLE
    next_sequence: int = 1
    current_time: Optional[datetime] = None

    @property
    def pending_request(self) -> Optional[PaymentRequest]:
        return self.slot.request

    def latest_timestamp(self) -> Optional[datetime]:
        """Newest time recorded anywhere in the state, for snapshots saved without a clock."""
        stamps = [tx.timestamp for tx in self.user.history]
        stamps.extend(tx.timestamp for tx in self.user.pending_sync)
        stamps.extend(tx.timestamp for tx in self.merchant.history)
        if self.slot.request is not None:
            stamps.append(self.slot.request.created_at)
        return max(stamps, default=None)

    def clone(self) -> GlobalState:
        """Deep, independent copy."""
        return GlobalState(
            user=self.user.clone(),
            merchant=self.merchant.clone(),
            connectivity=copy.copy(self.connectivity),
            slot=self.slot,
            next_sequence=self.next_sequence,
            current_time=self.current_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        request = self.slot.request
        return {
            'version': STATE_VERSION,
            'user_wallet': self.user.to_dict(),
            'merchant_wallet': self.merchant.to_dict(),
            'pending_payment_request': request.to_dict() if request else None,
            'connectivity': self.connectivity.to_dict(),
            'next_sequence': self.next_sequence,
            'current_time': self.current_time.isoformat() if self.current_time else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GlobalState:
        """
        Rebuild state from to_dict() output.

        Raises:
            ValueError: If the data is malformed
        """
        try:
            request_data = data.get('pending_payment_request')
            clock = data.get('current_time')
            slot: RequestSlot = Pending(PaymentRequest.from_dict(request_data)) if request_data else IDLE
            state = cls(
                user=UserWallet.from_dict(data['user_wallet']),
                merchant=MerchantWallet.from_dict(data['merchant_wallet']),
                connectivity=ConnectivityState.from_dict(data['connectivity']),
                slot=slot,
                next_sequence=int(data.get('next_sequence', 1)),
                current_time=datetime.fromisoformat(clock) if clock else None,
            )
        except (KeyError, TypeError, ValueError, ArithmeticError, AttributeError) as exc:
            raise ValueError(f"Malformed state: {exc}") from exc
        if state.merchant.balance < 0:
            raise ValueError("Malformed state: negative merchant balance")
        return state


def initial_state(config: NetworkConfig = DEFAULT_CONFIG) -> GlobalState:
    """
    Fresh state: empty wallets, bank funded with the configured amount,
    both sides active, radios off, auto-reload off.
    """
    return GlobalState(
        user=UserWallet(bank_balance=config.initial_bank_balance),
        merchant=MerchantWallet(),
        connectivity=ConnectivityState(),
        slot=IDLE,
        next_sequence=1,
    )


# ============================================================================
# STORES
# ============================================================================

@runtime_checkable
class StateStore(Protocol):
    """Load/save contract for whole-state snapshots."""

    def load_state(self) -> Optional[GlobalState]:
        """Return the saved state, or None if missing or malformed."""
        ...

    def save_state(self, state: GlobalState) -> None:
        ...


class MemoryStateStore:
    """Keeps the last snapshot in memory, serialized so later mutation cannot leak in."""

    def __init__(self, state: Optional[GlobalState] = None):
        self._data: Optional[Dict[str, Any]] = state.to_dict() if state else None
        self.save_count = 0

    def load_state(self) -> Optional[GlobalState]:
        if self._data is None:
            return None
        try:
            return GlobalState.from_dict(self._data)
        except ValueError as exc:
            logger.warning("Discarding saved state: %s", exc)
            return None

    def save_state(self, state: GlobalState) -> None:
        self._data = state.to_dict()
        self.save_count += 1

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)


class JsonFileStateStore:
    """
    Stores the snapshot as a JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so readers only ever see a complete snapshot.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load_state(self) -> Optional[GlobalState]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return GlobalState.from_dict(data)
        except (OSError, json.JSONDecodeError, ValueError) as exc:
            logger.warning("Discarding saved state at %s: %s", self.path, exc)
            return None

    def save_state(self, state: GlobalState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
