"""
connectivity.py - Link predicates

ConnectivityState holds the two boolean radio flags. The gate functions are
pure predicates over that state and the watch wallet's active flag; they are
consulted before every gated operation and never mutate anything.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Union

from .core import Channel


@dataclass
class ConnectivityState:
    """Process-wide radio flags, changed only through explicit toggles."""
    bluetooth_up: bool = False
    wifi_up: bool = False

    def set(self, channel: Union[Channel, str], on: bool) -> None:
        channel = parse_channel(channel)
        if channel is Channel.BLUETOOTH:
            self.bluetooth_up = bool(on)
        else:
            self.wifi_up = bool(on)

    def to_dict(self) -> Dict[str, Any]:
        return {'bluetooth_up': self.bluetooth_up, 'wifi_up': self.wifi_up}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConnectivityState:
        return cls(bluetooth_up=bool(data['bluetooth_up']), wifi_up=bool(data['wifi_up']))


def parse_channel(channel: Union[Channel, str]) -> Channel:
    """Accept a Channel or its string name ("bluetooth", "wifi")."""
    if isinstance(channel, Channel):
        return channel
    try:
        return Channel(str(channel).lower())
    except ValueError:
        raise ValueError(f"Unknown channel: {channel!r}") from None


def is_watch_linked(conn: ConnectivityState, watch_active: bool) -> bool:
    """The watch is linked when bluetooth is up and the watch wallet is active."""
    return conn.bluetooth_up and watch_active


def is_load_ready(conn: ConnectivityState, watch_active: bool) -> bool:
    """Top-ups need wifi on the phone and a linked watch."""
    return conn.wifi_up and is_watch_linked(conn, watch_active)
