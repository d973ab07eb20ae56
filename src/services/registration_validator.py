"""Accept/reject decision for a registration form submission."""
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from src.models.party import Party
from src.models.registration import Registration
from src.utils.validation import normalize_identity, validate_identity

MAX_EVENTS_PER_IC = 2

MSG_INCOMPLETE = "Please complete all fields."
MSG_ALREADY_REGISTERED = "IC has already registered for: {events}"
MSG_TOO_MANY_EVENTS = f"IC can only register for up to {MAX_EVENTS_PER_IC} events in total."


@dataclass
class ValidationResult:
    """Outcome of validating one submission."""

    accepted: bool
    message: str = ""
    registrations: List[Registration] = field(default_factory=list)


def _unique(ids: Iterable[int]) -> List[int]:
    return list(dict.fromkeys(ids))


def check_submission_fields(
    identity_raw: str,
    phone: str,
    selected_event_ids: Sequence[int],
    party: Optional[Party],
) -> Tuple[bool, str]:
    """
    Checks that need no store access: IC format, then required fields.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    is_valid, error_msg = validate_identity(identity_raw)
    if not is_valid:
        return False, error_msg

    if not phone or not selected_event_ids or party is None:
        return False, MSG_INCOMPLETE

    return True, ""


def validate_submission(
    identity_raw: str,
    phone: str,
    selected_event_ids: Sequence[int],
    party: Optional[Party],
    existing_event_ids: Iterable[int],
    event_names: Mapping[int, str],
) -> ValidationResult:
    """
    Decide whether a submission may be committed.

    Args:
        identity_raw: IC number as typed, hyphens allowed
        phone: Phone number, hyphens already stripped
        selected_event_ids: Events ticked on the form
        party: Party resolved from the form's slug
        existing_event_ids: Events already on file for this IC, read fresh
        event_names: Event id → name, for the duplicate message

    Returns:
        ValidationResult; when accepted, one Registration per selected event

    Checks run in order and the first failure is reported: letters in the
    IC, IC not 12 digits, missing fields, an event already registered, and
    finally more than MAX_EVENTS_PER_IC events in total. A duplicate is
    reported even when the total would also be exceeded.
    """
    selected = _unique(selected_event_ids)

    is_valid, error_msg = check_submission_fields(identity_raw, phone, selected, party)
    if not is_valid:
        return ValidationResult(False, error_msg)

    existing_rows = list(existing_event_ids)
    existing = set(existing_rows)
    already_selected = [event_id for event_id in selected if event_id in existing]
    if already_selected:
        names = ", ".join(event_names.get(event_id, str(event_id)) for event_id in already_selected)
        return ValidationResult(False, MSG_ALREADY_REGISTERED.format(events=names))

    if len(existing_rows) + len(selected) > MAX_EVENTS_PER_IC:
        return ValidationResult(False, MSG_TOO_MANY_EVENTS)

    identity = normalize_identity(identity_raw)
    registrations = [
        Registration(
            ic_number=identity,
            phone_number=phone,
            party_id=party.id,
            event_id=event_id,
        )
        for event_id in selected
    ]
    return ValidationResult(True, "", registrations)
