"""Registration service: public sign-ups and admin maintenance of registrations."""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from src.models.party import Party
from src.models.registration import Registration
from src.services.event_service import get_event_names
from src.services.pagination import CHUNK_SIZE, MAX_ROWS, fetch_all
from src.services.record_store import RecordStore
from src.services.registration_validator import (
    check_submission_fields,
    validate_submission,
)
from src.utils.exceptions import StoreError
from src.utils.validation import normalize_identity, normalize_phone, validate_identity

logger = logging.getLogger(__name__)

MSG_SUCCESS = "Registration Successful!"
ALL_PARTIES = "All"


def get_existing_event_ids(store: RecordStore, ic_number: str) -> List[int]:
    """Event ids already registered under a normalized IC number."""
    rows = store.list("registrations", filters={"ic_number": ic_number}, columns="event_id")
    return [row["event_id"] for row in rows]


def submit_registration(
    store: RecordStore,
    party: Optional[Party],
    ic_number: str,
    phone_number: str,
    event_ids: Sequence[int],
) -> Tuple[bool, str]:
    """
    Register an IC number for one or more events through a party's form.

    Args:
        store: Record store
        party: Party resolved from the form slug (None if unresolved)
        ic_number: IC as typed; hyphens are stripped
        phone_number: Phone as typed; hyphens are stripped
        event_ids: Selected events

    Returns:
        Tuple of (success: bool, message: str)
        - (True, MSG_SUCCESS) after the batch insert
        - (False, reason) for input errors, duplicates, the total cap, or
          the store's own error text when a read or insert fails

    Behavior:
        - Input errors are reported without touching the store
        - Existing registrations for the IC are read fresh on every call
        - All rows are inserted in one batch; nothing is retried
        - The read and the insert are separate round trips, so two
          concurrent submissions for one IC can both pass the checks
    """
    phone = normalize_phone(phone_number)

    is_valid, error_msg = check_submission_fields(ic_number, phone, event_ids, party)
    if not is_valid:
        return False, error_msg

    identity = normalize_identity(ic_number)

    try:
        existing_event_ids = get_existing_event_ids(store, identity)
        event_names = get_event_names(store) if existing_event_ids else {}
    except StoreError as e:
        logger.error("Failed to read registrations for submission: %s", e.message)
        return False, e.message

    result = validate_submission(
        ic_number, phone, event_ids, party, existing_event_ids, event_names
    )
    if not result.accepted:
        return False, result.message

    try:
        store.insert("registrations", [reg.to_row() for reg in result.registrations])
    except StoreError as e:
        logger.error("Registration insert failed for party %s: %s", party.id, e.message)
        return False, e.message

    logger.info(
        "Registered %d event(s) for party %s", len(result.registrations), party.slug
    )
    return True, MSG_SUCCESS


def list_registrations(
    store: RecordStore,
    chunk_size: int = CHUNK_SIZE,
    max_rows: int = MAX_ROWS,
) -> List[Registration]:
    """
    Load every registration, ordered by id, with party and event names.

    Pages of chunk_size rows are read until a short page or max_rows.
    """
    def fetch_page(start: int, end: int):
        return store.list("registrations", order_by="id", ascending=True, start=start, end=end)

    rows = fetch_all(fetch_page, chunk_size=chunk_size, max_rows=max_rows)

    party_names = {row["id"]: row["name"] for row in store.list("parties", columns="id, name")}
    event_names = get_event_names(store)

    return [Registration.from_row(row, party_names, event_names) for row in rows]


def search_registrations(
    registrations: List[Registration],
    term: str = "",
    party_name: str = ALL_PARTIES,
) -> List[Registration]:
    """
    Filter registrations for the admin table.

    Args:
        registrations: Rows to filter
        term: Substring matched against IC or phone number; empty matches all
        party_name: Exact party name, or ALL_PARTIES for no party filter
    """
    filtered = registrations

    if term:
        filtered = [
            r for r in filtered
            if term in (r.ic_number or "") or term in (r.phone_number or "")
        ]

    if party_name and party_name != ALL_PARTIES:
        filtered = [r for r in filtered if r.party_name == party_name]

    return filtered


def count_by_event(registrations: List[Registration]) -> Dict[str, int]:
    """Number of registrations per event name; rows without an event are skipped."""
    counts: Dict[str, int] = {}
    for registration in registrations:
        if registration.event_name:
            counts[registration.event_name] = counts.get(registration.event_name, 0) + 1
    return counts


def update_registration(
    store: RecordStore, registration_id: int, ic_number: str, phone_number: str
) -> Tuple[bool, str]:
    """
    Edit the IC and phone number of one registration.

    Returns:
        Tuple of (success: bool, message: str)
    """
    is_valid, error_msg = validate_identity(ic_number)
    if not is_valid:
        return False, error_msg

    phone = normalize_phone(phone_number)
    if not phone.strip():
        return False, "Phone number cannot be empty"

    try:
        updated = store.update(
            "registrations",
            {"ic_number": normalize_identity(ic_number), "phone_number": phone},
            {"id": registration_id},
        )
    except StoreError as e:
        logger.error("Failed to update registration %s: %s", registration_id, e.message)
        return False, e.message

    if not updated:
        return False, "Registration not found"

    return True, "Registration updated"


def set_ticket_redeemed(
    store: RecordStore, registration_id: int, redeemed: bool
) -> Tuple[bool, str]:
    """Mark a registration's ticket as redeemed or not."""
    try:
        updated = store.update(
            "registrations", {"redeem_ticket": bool(redeemed)}, {"id": registration_id}
        )
    except StoreError as e:
        logger.error("Failed to toggle ticket for %s: %s", registration_id, e.message)
        return False, e.message

    if not updated:
        return False, "Registration not found"

    return True, "Ticket redeemed" if redeemed else "Ticket unredeemed"


def delete_registration(store: RecordStore, registration_id: int) -> Tuple[bool, str]:
    """Delete one registration permanently."""
    try:
        removed = store.delete("registrations", {"id": registration_id})
    except StoreError as e:
        logger.error("Failed to delete registration %s: %s", registration_id, e.message)
        return False, e.message

    if not removed:
        return False, "Registration not found"

    return True, "Registration deleted"
