"""
test_notifications.py - Tests for the watch/phone alert contract
"""

import logging
import pytest

from zippay import (
    AlertLevel, Surface, Notifier, NullNotifier, LoggingNotifier, RecordingNotifier,
)

from tests.helpers import make_network


class TestNotifiers:

    @pytest.mark.parametrize("cls", [NullNotifier, LoggingNotifier, RecordingNotifier])
    def test_satisfies_protocol(self, cls):
        assert isinstance(cls(), Notifier)

    def test_recording(self):
        notifier = RecordingNotifier()
        notifier.watch_alert("PAID SUCCESS", AlertLevel.SUCCESS)
        notifier.phone_alert("hello", AlertLevel.INFO)
        assert notifier.messages(Surface.WATCH) == ["PAID SUCCESS"]
        assert notifier.last(Surface.PHONE).level is AlertLevel.INFO
        notifier.clear()
        with pytest.raises(LookupError):
            notifier.last(Surface.WATCH)

    def test_logging_levels(self, caplog):
        notifier = LoggingNotifier()
        with caplog.at_level(logging.INFO, logger="zippay.notifications"):
            notifier.watch_alert("SYNC ERROR", AlertLevel.ERROR)
            notifier.phone_alert("Synced", AlertLevel.SUCCESS)
        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert (logging.WARNING, "[WATCH] SYNC ERROR") in levels
        assert (logging.INFO, "[PHONE] Synced") in levels


class TestReportedOnce:

    def test_rejection_reported_once_per_surface(self, offline_network, notifier):
        notifier.clear()
        with pytest.raises(Exception):
            offline_network.load_top_up(100)
        assert len(notifier.messages(Surface.WATCH)) == 1
        assert len(notifier.messages(Surface.PHONE)) == 1

    def test_rejection_is_logged(self, offline_network, caplog):
        with caplog.at_level(logging.WARNING, logger="zippay.network"):
            with pytest.raises(Exception):
                offline_network.load_top_up(100)
        assert any("load_top_up rejected" in r.getMessage() for r in caplog.records)
