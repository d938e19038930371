"""
notifications.py - Advisory messages for the presentation layer

Outcomes are reported as short transient alerts, either on the watch
(device-local context) or in the phone app (companion context). Rendering,
sounds and haptics belong to the presentation layer; this module only
defines the contract and a few plain implementations.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, runtime_checkable
import logging


logger = logging.getLogger(__name__)


class AlertLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Surface(Enum):
    WATCH = "watch"
    PHONE = "phone"


@dataclass(frozen=True, slots=True)
class Alert:
    surface: Surface
    message: str
    level: AlertLevel


@runtime_checkable
class Notifier(Protocol):
    """Receiver of advisory alerts."""

    def watch_alert(self, message: str, level: AlertLevel) -> None:
        ...

    def phone_alert(self, message: str, level: AlertLevel) -> None:
        ...


class NullNotifier:
    """Discards every alert."""

    def watch_alert(self, message: str, level: AlertLevel) -> None:
        pass

    def phone_alert(self, message: str, level: AlertLevel) -> None:
        pass


class LoggingNotifier:
    """Writes alerts to the log; errors at WARNING, everything else at INFO."""

    def watch_alert(self, message: str, level: AlertLevel) -> None:
        self._log(Surface.WATCH, message, level)

    def phone_alert(self, message: str, level: AlertLevel) -> None:
        self._log(Surface.PHONE, message, level)

    @staticmethod
    def _log(surface: Surface, message: str, level: AlertLevel) -> None:
        log_level = logging.WARNING if level is AlertLevel.ERROR else logging.INFO
        logger.log(log_level, "[%s] %s", surface.value.upper(), message)


class RecordingNotifier:
    """
    Keeps every alert in order of arrival.

    Example:
        notifier = RecordingNotifier()
        network = PaymentNetwork(notifier=notifier)
        ...
        assert notifier.last(Surface.WATCH).message == "PAID SUCCESS"
    """

    def __init__(self):
        self.alerts: List[Alert] = []

    def watch_alert(self, message: str, level: AlertLevel) -> None:
        self.alerts.append(Alert(Surface.WATCH, message, level))

    def phone_alert(self, message: str, level: AlertLevel) -> None:
        self.alerts.append(Alert(Surface.PHONE, message, level))

    def messages(self, surface: Surface) -> List[str]:
        return [a.message for a in self.alerts if a.surface is surface]

    def last(self, surface: Surface) -> Alert:
        for alert in reversed(self.alerts):
            if alert.surface is surface:
                return alert
        raise LookupError(f"No {surface.value} alert recorded")

    def clear(self) -> None:
        self.alerts.clear()
