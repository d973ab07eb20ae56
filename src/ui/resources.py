"""Process-wide resources shared by every Streamlit session."""
import atexit
import logging

import streamlit as st

from src.services.change_feed import ChangeFeed
from src.services.record_store import RecordStore, create_record_store

logger = logging.getLogger(__name__)


@st.cache_resource
def get_store() -> RecordStore:
    """Record store selected by configuration, created once per process."""
    store = create_record_store()
    logger.info("Using record store %s", type(store).__name__)
    return store


@st.cache_resource
def get_change_feed() -> ChangeFeed:
    """Change feed subscribed to the registrations table."""
    feed = ChangeFeed()
    feed.watch(get_store(), "registrations")
    # stop watcher threads and realtime channels when the server exits
    atexit.register(feed.close)
    return feed
