"""Tests for the shared Streamlit resources."""
from unittest.mock import MagicMock, patch

from src.ui.resources import get_change_feed


class TestGetChangeFeed:
    """Test get_change_feed."""

    @patch('src.ui.resources.atexit')
    @patch('src.ui.resources.get_store')
    def test_watches_registrations_and_closes_at_exit(self, mock_get_store, mock_atexit):
        store = MagicMock()
        mock_get_store.return_value = store
        get_change_feed.clear()

        feed = get_change_feed()

        store.subscribe.assert_called_once()
        assert store.subscribe.call_args[0][0] == "registrations"
        mock_atexit.register.assert_called_once_with(feed.close)

        feed.close()
        store.subscribe.return_value.close.assert_called_once()
        get_change_feed.clear()
