"""Party management: listing, lookup by slug, and creation with event limits."""
import logging
from typing import Dict, List, Optional, Tuple

from src.models.party import EventLimit, Party
from src.services.event_service import get_event_names
from src.services.record_store import RecordStore
from src.utils import settings
from src.utils.exceptions import StoreError
from src.utils.validation import validate_party_name

logger = logging.getLogger(__name__)


def _row_to_party(row: Dict, limits: Optional[List[EventLimit]] = None) -> Party:
    return Party(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        event_limits=limits or [],
    )


def list_parties(store: RecordStore) -> List[Party]:
    """
    Load all parties ordered by name, with their event limits.

    Returns:
        List[Party]: each carrying EventLimit entries with event names resolved
    """
    party_rows = store.list("parties", order_by="name")
    if not party_rows:
        return []

    event_names = get_event_names(store)
    limit_rows = store.list(
        "event_limits", filters={"party_id": [row["id"] for row in party_rows]}
    )

    limits_by_party: Dict[int, List[EventLimit]] = {}
    for row in limit_rows:
        event_limit = EventLimit(
            party_id=row["party_id"],
            event_id=row["event_id"],
            limits=row.get("limits"),
            event_name=event_names.get(row["event_id"]),
        )
        limits_by_party.setdefault(event_limit.party_id, []).append(event_limit)

    return [_row_to_party(row, limits_by_party.get(row["id"])) for row in party_rows]


def get_party_by_slug(store: RecordStore, slug: str) -> Optional[Party]:
    """
    Resolve the party a registration form belongs to.

    Returns:
        Party, or None if no party has this slug
    """
    if not slug:
        return None
    row = store.get_one("parties", {"slug": slug})
    return _row_to_party(row) if row else None


def _insert_event_limits(
    store: RecordStore, party_id: int, limits: Dict[str, Optional[int]]
) -> int:
    """
    Insert one event_limits row per named event that exists.

    Unknown event names are skipped. Returns the number of rows inserted.
    """
    events = store.list("events", columns="id, name")
    ids_by_name = {row["name"]: row["id"] for row in events}

    rows = []
    for event_name, limit in limits.items():
        event_id = ids_by_name.get(event_name)
        if event_id is None:
            logger.warning("Skipping limit for unknown event %r", event_name)
            continue
        rows.append({"party_id": party_id, "event_id": event_id, "limits": limit})

    if not rows:
        return 0

    store.insert("event_limits", rows)
    logger.info("Event limits inserted for party %s: %s", party_id, rows)
    return len(rows)


def create_party(
    store: RecordStore, name: str, limits: Optional[Dict[str, Optional[int]]] = None
) -> Tuple[bool, str]:
    """
    Create a party and its per-event limits.

    Args:
        store: Record store
        name: Display name; the slug is derived from it
        limits: Event name → limit (None for "not set")

    Returns:
        Tuple of (success: bool, message: str)
        - (True, "Party created: <name>") on success
        - (False, validation message) for a bad name
        - (False, store message) when the store rejects a write, e.g. a
          duplicate slug
    """
    name = (name or "").strip()
    is_valid, error_msg = validate_party_name(name)
    if not is_valid:
        return False, error_msg

    slug = Party.slug_for(name)

    try:
        store.insert("parties", [{"name": name, "slug": slug}])
    except StoreError as e:
        logger.error("Failed to insert party %r: %s", name, e.message)
        return False, e.message

    try:
        party = get_party_by_slug(store, slug)
        if party is None:
            return False, f"Party '{slug}' not found after insert"

        if limits:
            _insert_event_limits(store, party.id, limits)
    except StoreError as e:
        logger.error("Failed to set up party %r: %s", name, e.message)
        return False, f"Error inserting limits: {e.message}"

    return True, f"Party created: {name}"


def default_limit_event_names() -> List[str]:
    """Events an admin is asked to set a limit for on party creation."""
    return settings.limited_event_names()


def form_link(party: Party, base_url: Optional[str] = None) -> str:
    """Absolute URL of a party's public registration form."""
    base = (base_url if base_url is not None else settings.base_url()).rstrip("/")
    return f"{base}/{party.form_path()}"
