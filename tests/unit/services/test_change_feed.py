"""Unit tests for the change feed."""
from unittest.mock import MagicMock

from src.services.change_feed import ChangeFeed


class TestChangeFeed:
    """Versions and subscriptions."""

    def test_versions_start_at_zero(self):
        assert ChangeFeed().version("registrations") == 0

    def test_bump_increments_per_table(self):
        feed = ChangeFeed()

        feed.bump("registrations")
        feed.bump("registrations")
        feed.bump("parties")

        assert feed.version("registrations") == 2
        assert feed.version("parties") == 1

    def test_has_changed(self):
        feed = ChangeFeed()
        seen = feed.version("registrations")

        assert feed.has_changed("registrations", seen) is False
        feed.bump("registrations")
        assert feed.has_changed("registrations", seen) is True

    def test_watch_subscribes_once_and_bumps(self):
        store = MagicMock()
        feed = ChangeFeed()

        feed.watch(store, "registrations")
        feed.watch(store, "registrations")

        store.subscribe.assert_called_once()
        table, on_change = store.subscribe.call_args[0]
        assert table == "registrations"

        on_change()
        assert feed.version("registrations") == 1

    def test_close_closes_subscriptions(self):
        store = MagicMock()
        feed = ChangeFeed()
        feed.watch(store, "registrations")

        feed.close()

        store.subscribe.return_value.close.assert_called_once()
