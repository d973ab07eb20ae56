"""Read access to the events reference table."""
import logging
from typing import Dict, List

from src.models.event import Event
from src.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def list_events(store: RecordStore) -> List[Event]:
    """All events, ordered by id."""
    rows = store.list("events", order_by="id")
    return [Event(id=row["id"], name=row["name"]) for row in rows]


def get_event_names(store: RecordStore) -> Dict[int, str]:
    """Map of event id → event name."""
    return {event.id: event.name for event in list_events(store)}
