"""
sync_queue.py - Watch-side staging log

Debits approved on the watch are recorded locally first and only become part
of the phone's durable history when the watch syncs over bluetooth. The
queue is the staging half of a two-log design; sync_watch() is the one-way
merge into the durable half.
"""

from __future__ import annotations
from typing import Iterator, List, Optional

from .core import Transaction, LinkRequired
from .connectivity import ConnectivityState


class OfflineSyncQueue:
    """
    Ordered staging log of watch-originated transactions, newest first.

    The unsynced count is the length of the queue, so the two can never
    disagree.
    """

    def __init__(self, entries: Optional[List[Transaction]] = None):
        self._entries: List[Transaction] = list(entries or [])

    def stage(self, tx: Transaction) -> None:
        """Record a transaction locally (prepended, newest first)."""
        self._entries.insert(0, tx)

    def drain(self) -> List[Transaction]:
        """Remove and return every staged entry, newest first."""
        drained, self._entries = self._entries, []
        return drained

    def is_full(self, cap: int) -> bool:
        return len(self._entries) >= cap

    @property
    def entries(self) -> List[Transaction]:
        """Copy of the staged entries, newest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._entries))

    def __contains__(self, tx: object) -> bool:
        return tx in self._entries

    def __repr__(self) -> str:
        return f"OfflineSyncQueue({len(self._entries)} unsynced)"


def sync_watch(user, conn: ConnectivityState) -> List[Transaction]:
    """
    Merge the watch's staged transactions into the durable history.

    Every staged entry moves to the front of history with its relative order
    preserved; the queue ends up empty. With an empty queue this is a no-op
    beyond the connectivity check.

    Args:
        user: UserWallet whose queue is flushed
        conn: Current radio state

    Returns:
        The merged transactions, newest first (empty list if nothing was staged)

    Raises:
        LinkRequired: If bluetooth is down
    """
    if not conn.bluetooth_up:
        raise LinkRequired(
            "Bluetooth is required to sync",
            watch_message="SYNC FAILED",
            phone_message="Bluetooth connection required to sync history.",
        )
    merged = user.pending_sync.drain()
    if merged:
        user.history[:0] = merged
    return merged
